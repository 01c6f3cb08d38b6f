"""
Storage Backend Module

Provides abstract storage interface and implementations for in-memory (testing),
SQLite and PostgreSQL (persistence). Records are JSON documents keyed by id; all
monetary values are stored as Decimal strings.

Every backend gives atomic() real transaction semantics: writes made inside the
block are either all committed or all rolled back, nested blocks act as
savepoints, and other threads cannot observe a transaction in progress.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union
from decimal import Decimal
from datetime import datetime, timezone
import sqlite3
import json
import re
import threading
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from contextlib import contextmanager


logger = logging.getLogger("ledger.storage")

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StorageError(Exception):
    """Raised when a storage backend cannot complete an operation"""


class DuplicateRecordError(StorageError):
    """Raised when inserting a record whose id already exists"""


def _check_field(name: str) -> str:
    if not _FIELD_NAME.match(name):
        raise StorageError(f"Invalid field name: {name!r}")
    return name


@dataclass
class StorageRecord:
    """Base class for mutable stored records"""
    id: int
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = asdict(self)
        result['created_at'] = self.created_at.isoformat(timespec='microseconds')
        result['updated_at'] = self.updated_at.isoformat(timespec='microseconds')
        for key, value in result.items():
            if isinstance(value, Decimal):
                result[key] = str(value)
            elif isinstance(value, Enum):
                result[key] = value.value
        return result


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        """Insert or replace a record"""
        pass

    @abstractmethod
    def insert(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        """Insert a new record; raises DuplicateRecordError if the id exists"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        """Load a record from storage"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        pass

    @abstractmethod
    def delete(self, table: str, record_id: Any) -> bool:
        """Delete a record from storage"""
        pass

    @abstractmethod
    def exists(self, table: str, record_id: Any) -> bool:
        """Check if a record exists"""
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records whose fields equal the given filter values"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        """Count records in table"""
        pass

    @abstractmethod
    def next_id(self, table: str) -> int:
        """Allocate the next numeric id for a table (monotonic, never reused once committed)"""
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def load_for_update(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        """Load a record and lock it until the current transaction ends"""
        return self.load(table, record_id)

    def find_between(self, table: str, filters: Dict[str, Any], field: str,
                     lower: str, upper: str) -> List[Dict[str, Any]]:
        """
        Find records matching filters whose string field lies in [lower, upper].

        Bounds are compared lexicographically, so callers must store the field
        in an order-preserving format (fixed-width ISO-8601 timestamps).
        """
        _check_field(field)
        return [
            record for record in self.find(table, filters)
            if field in record and lower <= record[field] <= upper
        ]

    def create_index(self, table: str, fields: List[str]) -> None:
        """Create a secondary index on document fields (default no-op)"""
        pass

    def begin_transaction(self) -> None:
        """Start a database transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def atomic(self):
        """Context manager for atomic operations"""
        self.begin_transaction()
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()


class InMemoryStorage(StorageInterface):
    """
    In-memory storage implementation for testing

    Transactions hold the storage lock from begin to commit/rollback, so
    readers in other threads wait for the transaction to finish. Each level
    of nesting keeps an undo snapshot of the tables it touched.
    """

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}
        self._lock = threading.RLock()
        self._snapshots: List[Dict[str, Optional[Dict[str, Dict[str, Any]]]]] = []

    @staticmethod
    def _copy(record: Dict[str, Any]) -> Dict[str, Any]:
        return json.loads(json.dumps(record, default=str))

    def _ensure_table(self, table: str) -> None:
        if table not in self._data:
            self._data[table] = {}

    def _touch(self, table: str) -> None:
        """Remember a table's pre-transaction contents before its first write"""
        if self._snapshots and table not in self._snapshots[-1]:
            existing = self._data.get(table)
            self._snapshots[-1][table] = dict(existing) if existing is not None else None

    def save(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        with self._lock:
            self._touch(table)
            self._ensure_table(table)
            self._data[table][str(record_id)] = self._copy(data)

    def insert(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            if str(record_id) in self._data[table]:
                raise DuplicateRecordError(f"{table} record {record_id} already exists")
            self._touch(table)
            self._data[table][str(record_id)] = self._copy(data)

    def load(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            record = self._data[table].get(str(record_id))
            if record:
                return self._copy(record)
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            return [self._copy(record) for record in self._data[table].values()]

    def delete(self, table: str, record_id: Any) -> bool:
        with self._lock:
            self._ensure_table(table)
            if str(record_id) in self._data[table]:
                self._touch(table)
                del self._data[table][str(record_id)]
                return True
            return False

    def exists(self, table: str, record_id: Any) -> bool:
        with self._lock:
            self._ensure_table(table)
            return str(record_id) in self._data[table]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            results = []
            for record in self._data[table].values():
                match = True
                for key, value in filters.items():
                    if key not in record or record[key] != value:
                        match = False
                        break
                if match:
                    results.append(self._copy(record))
            return results

    def count(self, table: str) -> int:
        with self._lock:
            self._ensure_table(table)
            return len(self._data[table])

    def next_id(self, table: str) -> int:
        with self._lock:
            value = self._sequences.get(table, 0) + 1
            self._sequences[table] = value
            return value

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._touch(table)
            self._data[table] = {}

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass

    def begin_transaction(self) -> None:
        self._lock.acquire()
        self._snapshots.append({})

    def commit(self) -> None:
        if not self._snapshots:
            return
        finished = self._snapshots.pop()
        if self._snapshots:
            # Savepoint released: the enclosing level inherits the undo data
            for table, contents in finished.items():
                self._snapshots[-1].setdefault(table, contents)
        self._lock.release()

    def rollback(self) -> None:
        if not self._snapshots:
            return
        finished = self._snapshots.pop()
        for table, contents in finished.items():
            if contents is None:
                self._data.pop(table, None)
            else:
                self._data[table] = contents
        self._lock.release()


class SQLiteStorage(StorageInterface):
    """
    SQLite storage implementation for persistence

    The connection runs in autocommit mode; atomic() issues BEGIN IMMEDIATE so
    the write lock is taken before any read-modify-write, and nested blocks map
    to SAVEPOINTs. The connection lock is held for the whole transaction.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:", echo: bool = False):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0
        self._tables = set()

        if echo:
            self._connection.set_trace_callback(logger.debug)

        # Enable WAL mode for better concurrent access
        if self.db_path != ":memory:":
            with self._lock:
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

        self._connection.execute("""
            CREATE TABLE IF NOT EXISTS _sequences (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL
            )
        """)

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists with proper schema"""
        _check_field(table)
        if table in self._tables:
            return
        self._connection.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._connection.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_created_at
            ON {table}(created_at)
        """)
        self._tables.add(table)

    @staticmethod
    def _where(filters: Dict[str, Any]):
        conditions = []
        params = []
        for key, value in filters.items():
            expression = f"json_extract(data, '$.{_check_field(key)}')"
            if value is None:
                conditions.append(f"{expression} IS NULL")
            else:
                conditions.append(f"{expression} = ?")
                params.append(value)
        return conditions, params

    def save(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            now = datetime.now(timezone.utc).isoformat()
            data_json = json.dumps(data, default=str)
            self._connection.execute(f"""
                INSERT INTO {table} (id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
            """, (str(record_id), data_json, now, now))

    def insert(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            now = datetime.now(timezone.utc).isoformat()
            try:
                self._connection.execute(f"""
                    INSERT INTO {table} (id, data, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                """, (str(record_id), json.dumps(data, default=str), now, now))
            except sqlite3.IntegrityError as e:
                raise DuplicateRecordError(f"{table} record {record_id} already exists") from e

    def load(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT data FROM {table} WHERE id = ?
            """, (str(record_id),))
            row = cursor.fetchone()
            if row:
                return json.loads(row['data'])
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT data FROM {table} ORDER BY created_at
            """)
            return [json.loads(row['data']) for row in cursor.fetchall()]

    def delete(self, table: str, record_id: Any) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                DELETE FROM {table} WHERE id = ?
            """, (str(record_id),))
            return cursor.rowcount > 0

    def exists(self, table: str, record_id: Any) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT 1 FROM {table} WHERE id = ? LIMIT 1
            """, (str(record_id),))
            return cursor.fetchone() is not None

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            conditions, params = self._where(filters)
            where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
            cursor = self._connection.execute(f"""
                SELECT data FROM {table} {where_clause} ORDER BY created_at
            """, params)
            return [json.loads(row['data']) for row in cursor.fetchall()]

    def find_between(self, table: str, filters: Dict[str, Any], field: str,
                     lower: str, upper: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            conditions, params = self._where(filters)
            conditions.append(f"json_extract(data, '$.{_check_field(field)}') BETWEEN ? AND ?")
            params.extend([lower, upper])
            cursor = self._connection.execute(f"""
                SELECT data FROM {table} WHERE {' AND '.join(conditions)}
            """, params)
            return [json.loads(row['data']) for row in cursor.fetchall()]

    def count(self, table: str) -> int:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT COUNT(*) as count FROM {table}
            """)
            return cursor.fetchone()['count']

    def next_id(self, table: str) -> int:
        with self.atomic():
            self._connection.execute(
                "INSERT OR IGNORE INTO _sequences (name, value) VALUES (?, 0)", (table,)
            )
            self._connection.execute(
                "UPDATE _sequences SET value = value + 1 WHERE name = ?", (table,)
            )
            cursor = self._connection.execute(
                "SELECT value FROM _sequences WHERE name = ?", (table,)
            )
            return cursor.fetchone()['value']

    def create_index(self, table: str, fields: List[str]) -> None:
        with self._lock:
            self._ensure_table(table)
            columns = ", ".join(f"json_extract(data, '$.{_check_field(f)}')" for f in fields)
            self._connection.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{table}_{'_'.join(fields)}
                ON {table}({columns})
            """)

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._ensure_table(table)
            self._connection.execute(f"DELETE FROM {table}")

    def begin_transaction(self) -> None:
        self._lock.acquire()
        try:
            if self._depth == 0:
                self._connection.execute("BEGIN IMMEDIATE")
            else:
                self._connection.execute(f"SAVEPOINT sp_{self._depth}")
        except Exception:
            self._lock.release()
            raise
        self._depth += 1

    def commit(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            try:
                self._depth -= 1
                if self._depth == 0:
                    self._connection.execute("COMMIT")
                else:
                    self._connection.execute(f"RELEASE SAVEPOINT sp_{self._depth}")
            except Exception:
                if self._depth == 0 and self._connection.in_transaction:
                    self._connection.execute("ROLLBACK")
                    self._tables.clear()
                raise
            finally:
                self._lock.release()

    def rollback(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            try:
                self._depth -= 1
                if self._depth == 0:
                    self._connection.execute("ROLLBACK")
                    # Tables created inside the transaction are gone again
                    self._tables.clear()
                else:
                    self._connection.execute(f"ROLLBACK TO SAVEPOINT sp_{self._depth}")
                    self._connection.execute(f"RELEASE SAVEPOINT sp_{self._depth}")
            finally:
                self._lock.release()

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


class PostgreSQLStorage(StorageInterface):
    """PostgreSQL storage backend with ACID transaction support"""

    def __init__(self, connection_string: str):
        import psycopg2
        import psycopg2.extras
        self.psycopg2 = psycopg2
        self.extras = psycopg2.extras

        self.connection_string = connection_string
        self._connection = None
        self._lock = threading.RLock()
        self._depth = 0
        self._tables = set()
        self._connect()

    def _connect(self) -> None:
        """Establish database connection"""
        with self._lock:
            self._connection = self.psycopg2.connect(
                self.connection_string,
                cursor_factory=self.extras.RealDictCursor
            )
            self._connection.autocommit = False  # We handle transactions manually
            self._execute("""
                CREATE TABLE IF NOT EXISTS _sequences (
                    name TEXT PRIMARY KEY,
                    value BIGINT NOT NULL
                )
            """)
            self._connection.commit()

    def _execute(self, sql: str, params=None, fetch: Optional[str] = None):
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, params)
            if fetch == "one":
                return cursor.fetchone()
            if fetch == "all":
                return cursor.fetchall()
            return cursor.rowcount
        finally:
            cursor.close()

    def _autocommit(self) -> None:
        """Commit a standalone statement when no transaction is open"""
        if self._depth == 0:
            self._connection.commit()

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists with proper schema"""
        _check_field(table)
        if table in self._tables:
            return
        self._execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                data JSONB NOT NULL,
                created_at TIMESTAMPTZ DEFAULT NOW(),
                updated_at TIMESTAMPTZ DEFAULT NOW()
            )
        """)
        self._execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_created_at
            ON {table}(created_at)
        """)
        self._autocommit()
        self._tables.add(table)

    @staticmethod
    def _where(filters: Dict[str, Any]):
        conditions = []
        params = []
        for key, value in filters.items():
            if value is None:
                conditions.append(f"data -> '{_check_field(key)}' = 'null'::jsonb")
            else:
                conditions.append(f"data -> '{_check_field(key)}' = %s::jsonb")
                params.append(json.dumps(value, default=str))
        return conditions, params

    def save(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            now = datetime.now(timezone.utc)
            self._execute(f"""
                INSERT INTO {table} (id, data, created_at, updated_at)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    data = EXCLUDED.data,
                    updated_at = EXCLUDED.updated_at
            """, (str(record_id), json.dumps(data, default=str), now, now))
            self._autocommit()

    def insert(self, table: str, record_id: Any, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            now = datetime.now(timezone.utc)
            rowcount = self._execute(f"""
                INSERT INTO {table} (id, data, created_at, updated_at)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (id) DO NOTHING
            """, (str(record_id), json.dumps(data, default=str), now, now))
            if rowcount == 0:
                raise DuplicateRecordError(f"{table} record {record_id} already exists")
            self._autocommit()

    def load(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            row = self._execute(f"SELECT data FROM {table} WHERE id = %s",
                                (str(record_id),), fetch="one")
            self._autocommit()
            return dict(row['data']) if row else None

    def load_for_update(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        """Row-lock the record until the enclosing transaction ends"""
        with self._lock:
            self._ensure_table(table)
            row = self._execute(f"SELECT data FROM {table} WHERE id = %s FOR UPDATE",
                                (str(record_id),), fetch="one")
            self._autocommit()
            return dict(row['data']) if row else None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            rows = self._execute(f"SELECT data FROM {table} ORDER BY created_at", fetch="all")
            self._autocommit()
            return [dict(row['data']) for row in rows]

    def delete(self, table: str, record_id: Any) -> bool:
        with self._lock:
            self._ensure_table(table)
            rowcount = self._execute(f"DELETE FROM {table} WHERE id = %s", (str(record_id),))
            self._autocommit()
            return rowcount > 0

    def exists(self, table: str, record_id: Any) -> bool:
        with self._lock:
            self._ensure_table(table)
            row = self._execute(f"SELECT 1 FROM {table} WHERE id = %s LIMIT 1",
                                (str(record_id),), fetch="one")
            self._autocommit()
            return row is not None

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            conditions, params = self._where(filters)
            where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
            rows = self._execute(f"""
                SELECT data FROM {table} {where_clause} ORDER BY created_at
            """, params, fetch="all")
            self._autocommit()
            return [dict(row['data']) for row in rows]

    def find_between(self, table: str, filters: Dict[str, Any], field: str,
                     lower: str, upper: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            conditions, params = self._where(filters)
            conditions.append(f"data ->> '{_check_field(field)}' BETWEEN %s AND %s")
            params.extend([lower, upper])
            rows = self._execute(f"""
                SELECT data FROM {table} WHERE {' AND '.join(conditions)}
            """, params, fetch="all")
            self._autocommit()
            return [dict(row['data']) for row in rows]

    def count(self, table: str) -> int:
        with self._lock:
            self._ensure_table(table)
            row = self._execute(f"SELECT COUNT(*) AS count FROM {table}", fetch="one")
            self._autocommit()
            return row['count']

    def next_id(self, table: str) -> int:
        with self._lock:
            row = self._execute("""
                INSERT INTO _sequences (name, value) VALUES (%s, 1)
                ON CONFLICT (name) DO UPDATE SET value = _sequences.value + 1
                RETURNING value
            """, (table,), fetch="one")
            self._autocommit()
            return int(row['value'])

    def create_index(self, table: str, fields: List[str]) -> None:
        with self._lock:
            self._ensure_table(table)
            columns = ", ".join(f"(data ->> '{_check_field(f)}')" for f in fields)
            self._execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{table}_{'_'.join(fields)}
                ON {table} ({columns})
            """)
            self._autocommit()

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._ensure_table(table)
            self._execute(f"DELETE FROM {table}")
            self._autocommit()

    def begin_transaction(self) -> None:
        self._lock.acquire()
        try:
            if self._depth > 0:
                self._execute(f"SAVEPOINT sp_{self._depth}")
        except Exception:
            self._lock.release()
            raise
        self._depth += 1

    def commit(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            try:
                self._depth -= 1
                if self._depth == 0:
                    self._connection.commit()
                else:
                    self._execute(f"RELEASE SAVEPOINT sp_{self._depth}")
            except Exception:
                if self._depth == 0:
                    self._connection.rollback()
                    self._tables.clear()
                raise
            finally:
                self._lock.release()

    def rollback(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            try:
                self._depth -= 1
                if self._depth == 0:
                    self._connection.rollback()
                    self._tables.clear()
                else:
                    self._execute(f"ROLLBACK TO SAVEPOINT sp_{self._depth}")
            finally:
                self._lock.release()

    def close(self) -> None:
        """Close PostgreSQL connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_storage(database_url: str, echo: bool = False) -> StorageInterface:
    """
    Build a storage backend from a database URL.

    Supported forms: ``memory://``, ``sqlite:///path/to.db``, ``sqlite://``
    (in-memory SQLite) and ``postgresql://...`` / ``postgres://...``.
    """
    if database_url in ("memory", "memory://"):
        return InMemoryStorage()
    if database_url.startswith("sqlite://"):
        path = database_url[len("sqlite://"):]
        if path.startswith("/"):
            path = path[1:]
        return SQLiteStorage(path or ":memory:", echo=echo)
    if database_url.startswith(("postgresql://", "postgres://")):
        return PostgreSQLStorage(database_url)
    raise StorageError(f"Unsupported database URL: {database_url}")
