"""
Double-Entry Ledger Module

Append-only log of ledger entries. Each entry records the account balance
before and after one movement and is never updated or deleted once written;
the ledger is the authoritative audit trail and the only source used to
reconstruct historical balances and statements.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from enum import Enum

from .storage import StorageInterface
from .exceptions import InvalidDateRangeError
from .money import ZERO, ensure_utc, utc_now
from .logging_config import get_logger


class EntryType(Enum):
    """Direction of a movement, shared by movements and ledger entries"""
    DEBIT = "DEBIT"    # Money out, balance decreases
    CREDIT = "CREDIT"  # Money in, balance increases

    @classmethod
    def from_amount(cls, amount: Decimal) -> 'EntryType':
        """Classify a signed amount: negative is a debit, anything else a credit"""
        return cls.DEBIT if amount < ZERO else cls.CREDIT

    @property
    def label(self) -> str:
        return self.value.capitalize()


def timestamp_key(moment: datetime) -> str:
    """Fixed-width UTC ISO-8601 text; sorts lexicographically in time order"""
    return ensure_utc(moment).isoformat(timespec='microseconds')


@dataclass(frozen=True)
class LedgerEntry:
    """
    Immutable record of one balance change

    amount is always the non-negative magnitude; entry_type gives the direction.
    """
    id: int
    timestamp: datetime
    movement_id: int
    account_id: int
    entry_type: EntryType
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    description: str = ""
    initiated_by: str = "SYSTEM"

    @property
    def signed_amount(self) -> Decimal:
        """Amount as seen by the account holder: debits negative"""
        return -self.amount if self.entry_type == EntryType.DEBIT else self.amount

    def is_consistent(self) -> bool:
        """Check the before/after arithmetic and the non-negative balance rule"""
        return (
            self.amount >= ZERO
            and self.balance_after >= ZERO
            and self.balance_before + self.signed_amount == self.balance_after
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': timestamp_key(self.timestamp),
            'movement_id': self.movement_id,
            'account_id': self.account_id,
            'entry_type': self.entry_type.value,
            'amount': str(self.amount),
            'balance_before': str(self.balance_before),
            'balance_after': str(self.balance_after),
            'description': self.description,
            'initiated_by': self.initiated_by
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerEntry':
        return cls(
            id=int(data['id']),
            timestamp=datetime.fromisoformat(data['timestamp']),
            movement_id=int(data['movement_id']),
            account_id=int(data['account_id']),
            entry_type=EntryType(data['entry_type']),
            amount=Decimal(data['amount']),
            balance_before=Decimal(data['balance_before']),
            balance_after=Decimal(data['balance_after']),
            description=data.get('description', ''),
            initiated_by=data.get('initiated_by', 'SYSTEM')
        )


def _chronological(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    return sorted(entries, key=lambda e: (e.timestamp, e.id))


class LedgerStore:
    """
    Durable, strictly append-only log of ledger entries

    append() is the only write operation; there is deliberately no update or
    delete.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "ledger_entries"

        self.storage.create_index(self.table_name, ["account_id", "timestamp"])
        self.storage.create_index(self.table_name, ["movement_id"])

    def append(
        self,
        movement_id: int,
        account_id: int,
        entry_type: EntryType,
        amount: Decimal,
        balance_before: Decimal,
        balance_after: Decimal,
        description: str = "",
        initiated_by: str = "SYSTEM",
        timestamp: Optional[datetime] = None
    ) -> LedgerEntry:
        """
        Append a new entry

        Raises:
            ValueError: If the entry violates the balance arithmetic or
                would record a negative balance
        """
        entry = LedgerEntry(
            id=self.storage.next_id(self.table_name),
            timestamp=ensure_utc(timestamp or utc_now()),
            movement_id=movement_id,
            account_id=account_id,
            entry_type=entry_type,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            description=description,
            initiated_by=initiated_by
        )
        if not entry.is_consistent():
            raise ValueError(
                f"Inconsistent ledger entry for account {account_id}: "
                f"{balance_before} {entry_type.value} {amount} -> {balance_after}"
            )
        self.storage.insert(self.table_name, entry.id, entry.to_dict())
        return entry

    def get(self, entry_id: int) -> Optional[LedgerEntry]:
        data = self.storage.load(self.table_name, entry_id)
        return LedgerEntry.from_dict(data) if data else None

    def list_all(self) -> List[LedgerEntry]:
        return _chronological(LedgerEntry.from_dict(d) for d in self.storage.load_all(self.table_name))

    def find_by_account(self, account_id: int) -> List[LedgerEntry]:
        found = self.storage.find(self.table_name, {"account_id": account_id})
        return _chronological(LedgerEntry.from_dict(d) for d in found)

    def find_by_account_and_range(self, account_id: int, start: datetime,
                                  end: datetime) -> List[LedgerEntry]:
        """Entries for one account with start <= timestamp <= end, oldest first"""
        found = self.storage.find_between(
            self.table_name, {"account_id": account_id}, "timestamp",
            timestamp_key(start), timestamp_key(end)
        )
        return _chronological(LedgerEntry.from_dict(d) for d in found)

    def find_by_accounts_and_range(self, account_ids: Iterable[int], start: datetime,
                                   end: datetime) -> List[LedgerEntry]:
        """Entries for several accounts in [start, end], oldest first"""
        entries = []
        for account_id in dict.fromkeys(account_ids):
            entries.extend(self.find_by_account_and_range(account_id, start, end))
        return _chronological(entries)

    def find_by_movement(self, movement_id: int) -> List[LedgerEntry]:
        found = self.storage.find(self.table_name, {"movement_id": movement_id})
        return _chronological(LedgerEntry.from_dict(d) for d in found)

    def count_by_account(self, account_id: int) -> int:
        return len(self.storage.find(self.table_name, {"account_id": account_id}))

    def latest_for_account(self, account_id: int) -> Optional[LedgerEntry]:
        entries = self.find_by_account(account_id)
        return entries[-1] if entries else None


@dataclass
class ChainVerification:
    """Outcome of replaying one account's ledger"""
    account_id: int
    entry_count: int
    problems: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.problems


class GeneralLedger:
    """
    Read-side queries over the ledger and integrity checks
    """

    def __init__(self, ledger_store: LedgerStore, account_store=None, movement_store=None):
        self.ledger_store = ledger_store
        self.account_store = account_store
        self.movement_store = movement_store
        self.logger = get_logger("ledger.ledger")

    @staticmethod
    def _check_range(start_date: datetime, end_date: datetime) -> None:
        if ensure_utc(start_date) > ensure_utc(end_date):
            raise InvalidDateRangeError(
                f"Start date {start_date.isoformat()} must not be after end date {end_date.isoformat()}"
            )

    def get_account_ledger(self, account_id: int) -> List[LedgerEntry]:
        """Complete audit trail for an account"""
        entries = self.ledger_store.find_by_account(account_id)
        self.logger.info(f"Retrieved {len(entries)} ledger entries for account: {account_id}")
        return entries

    def get_account_ledger_by_date_range(self, account_id: int, start_date: datetime,
                                         end_date: datetime) -> List[LedgerEntry]:
        self._check_range(start_date, end_date)
        return self.ledger_store.find_by_account_and_range(account_id, start_date, end_date)

    def get_ledger_by_accounts_and_date_range(self, account_ids: List[int], start_date: datetime,
                                              end_date: datetime) -> List[LedgerEntry]:
        """Consolidated entries for several accounts in a period"""
        if not account_ids:
            raise ValueError("Account IDs cannot be empty")
        self._check_range(start_date, end_date)
        return self.ledger_store.find_by_accounts_and_range(account_ids, start_date, end_date)

    def get_ledger_by_movement(self, movement_id: int) -> List[LedgerEntry]:
        return self.ledger_store.find_by_movement(movement_id)

    def get_account_ledger_entry_count(self, account_id: int) -> int:
        return self.ledger_store.count_by_account(account_id)

    def verify_account_chain(self, account_id: int) -> ChainVerification:
        """
        Replay an account's entries and report every broken invariant

        Checks per-entry arithmetic and non-negative balances, that each entry
        starts where the previous one ended, and that the stored account
        balance equals the last entry's balance_after.
        """
        entries = self.ledger_store.find_by_account(account_id)
        result = ChainVerification(account_id=account_id, entry_count=len(entries))

        previous = None
        for entry in entries:
            if not entry.is_consistent():
                result.problems.append(f"Entry {entry.id} arithmetic or sign is inconsistent")
            if previous is not None and previous.balance_after != entry.balance_before:
                result.problems.append(
                    f"Entry {entry.id} starts at {entry.balance_before} but entry "
                    f"{previous.id} ended at {previous.balance_after}"
                )
            previous = entry

        if self.account_store is not None and previous is not None:
            account = self.account_store.get(account_id)
            if account is not None and account.balance != previous.balance_after:
                result.problems.append(
                    f"Account balance {account.balance} differs from last entry "
                    f"balance {previous.balance_after}"
                )

        if not result.is_valid:
            self.logger.error(f"Ledger chain broken for account {account_id}: {result.problems}")
        return result

    def find_orphaned_entries(self, account_id: Optional[int] = None) -> List[LedgerEntry]:
        """Entries whose movement row no longer exists (hard-deleted movements)"""
        if self.movement_store is None:
            raise ValueError("Orphan detection requires a movement store")
        if account_id is None:
            entries = self.ledger_store.list_all()
        else:
            entries = self.ledger_store.find_by_account(account_id)
        return [e for e in entries if self.movement_store.get(e.movement_id) is None]
