"""
Tests for the append-only ledger and ledger queries
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone, timedelta

from account_ledger.storage import InMemoryStorage, SQLiteStorage
from account_ledger.accounts import AccountStore, AccountType
from account_ledger.movements import MovementStore
from account_ledger.ledger import EntryType, GeneralLedger, LedgerEntry, LedgerStore
from account_ledger.exceptions import InvalidDateRangeError


def day(n: int) -> datetime:
    return datetime(2026, 3, n, 12, 0, tzinfo=timezone.utc)


class TestEntryType:

    def test_from_amount(self):
        assert EntryType.from_amount(Decimal("-0.01")) == EntryType.DEBIT
        assert EntryType.from_amount(Decimal("0.01")) == EntryType.CREDIT

    def test_label(self):
        assert EntryType.DEBIT.label == "Debit"
        assert EntryType.CREDIT.label == "Credit"


class TestLedgerEntry:

    def test_entry_is_immutable(self):
        entry = LedgerEntry(
            id=1, timestamp=day(1), movement_id=1, account_id=1,
            entry_type=EntryType.CREDIT, amount=Decimal("10.00"),
            balance_before=Decimal("0.00"), balance_after=Decimal("10.00")
        )
        with pytest.raises(AttributeError):
            entry.amount = Decimal("20.00")

    def test_signed_amount_and_consistency(self):
        debit = LedgerEntry(
            id=1, timestamp=day(1), movement_id=1, account_id=1,
            entry_type=EntryType.DEBIT, amount=Decimal("200.00"),
            balance_before=Decimal("1000.00"), balance_after=Decimal("800.00")
        )
        assert debit.signed_amount == Decimal("-200.00")
        assert debit.is_consistent()

        wrong = LedgerEntry(
            id=2, timestamp=day(1), movement_id=2, account_id=1,
            entry_type=EntryType.CREDIT, amount=Decimal("200.00"),
            balance_before=Decimal("1000.00"), balance_after=Decimal("800.00")
        )
        assert not wrong.is_consistent()

    def test_dict_round_trip_keeps_utc_timestamp(self):
        entry = LedgerEntry(
            id=3, timestamp=day(2), movement_id=9, account_id=4,
            entry_type=EntryType.DEBIT, amount=Decimal("5.00"),
            balance_before=Decimal("5.00"), balance_after=Decimal("0.00"),
            description="Debit of -5.00 on account 1000000001", initiated_by="SYSTEM"
        )
        data = entry.to_dict()
        assert data["timestamp"] == "2026-03-02T12:00:00.000000+00:00"
        assert LedgerEntry.from_dict(data) == entry


class TestLedgerStore:
    """Append-only entry storage"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.ledger = LedgerStore(self.storage)

    def append_credit(self, account_id, before, amount, when, movement_id=1):
        return self.ledger.append(
            movement_id=movement_id,
            account_id=account_id,
            entry_type=EntryType.CREDIT,
            amount=Decimal(amount),
            balance_before=Decimal(before),
            balance_after=Decimal(before) + Decimal(amount),
            timestamp=when
        )

    def test_append_and_get(self):
        entry = self.append_credit(1, "0.00", "10.00", day(1))
        assert entry.id == 1
        assert self.ledger.get(entry.id) == entry
        assert self.ledger.get(999) is None

    def test_append_only_surface(self):
        assert not hasattr(self.ledger, "update")
        assert not hasattr(self.ledger, "delete")

    def test_append_rejects_inconsistent_entry(self):
        with pytest.raises(ValueError):
            self.ledger.append(
                movement_id=1, account_id=1, entry_type=EntryType.DEBIT,
                amount=Decimal("10.00"), balance_before=Decimal("5.00"),
                balance_after=Decimal("-5.00")
            )
        assert self.ledger.find_by_account(1) == []

    def test_find_by_account_orders_by_timestamp(self):
        later = self.append_credit(1, "10.00", "5.00", day(3), movement_id=2)
        earlier = self.append_credit(1, "0.00", "10.00", day(1), movement_id=1)
        self.append_credit(2, "0.00", "1.00", day(2), movement_id=3)

        assert [e.id for e in self.ledger.find_by_account(1)] == [earlier.id, later.id]
        assert self.ledger.count_by_account(1) == 2
        assert self.ledger.latest_for_account(1) == later
        assert self.ledger.latest_for_account(77) is None

    def test_range_queries_are_inclusive(self):
        first = self.append_credit(1, "0.00", "1.00", day(1), movement_id=1)
        second = self.append_credit(1, "1.00", "1.00", day(5), movement_id=2)
        self.append_credit(1, "2.00", "1.00", day(10), movement_id=3)
        other = self.append_credit(2, "0.00", "1.00", day(5), movement_id=4)

        found = self.ledger.find_by_account_and_range(1, day(1), day(5))
        assert [e.id for e in found] == [first.id, second.id]

        combined = self.ledger.find_by_accounts_and_range([1, 2], day(5), day(5))
        assert sorted(e.id for e in combined) == sorted([second.id, other.id])

    def test_find_by_movement(self):
        entry = self.append_credit(1, "0.00", "1.00", day(1), movement_id=42)
        assert self.ledger.find_by_movement(42) == [entry]
        assert self.ledger.find_by_movement(43) == []

    def test_sqlite_range_query(self):
        """Range filtering is pushed down to SQLite"""
        storage = SQLiteStorage(":memory:")
        ledger = LedgerStore(storage)
        for n in (1, 2, 3):
            ledger.append(
                movement_id=n, account_id=1, entry_type=EntryType.CREDIT,
                amount=Decimal("1.00"), balance_before=Decimal(n - 1),
                balance_after=Decimal(n), timestamp=day(n)
            )
        assert [e.movement_id for e in ledger.find_by_account_and_range(1, day(2), day(3))] == [2, 3]
        storage.close()


class TestGeneralLedger:
    """Ledger queries and integrity checks"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.accounts = AccountStore(self.storage)
        self.movements = MovementStore(self.storage)
        self.ledger_store = LedgerStore(self.storage)
        self.ledger = GeneralLedger(self.ledger_store, self.accounts, self.movements)

        self.account = self.accounts.insert("1000000001", AccountType.SAVINGS, Decimal("30.00"), 1)
        balance = Decimal("0.00")
        for n in (1, 2, 3):
            movement = self.movements.insert(self.account.id, Decimal("10.00"), balance + 10, day(n))
            self.ledger_store.append(
                movement_id=movement.id, account_id=self.account.id,
                entry_type=EntryType.CREDIT, amount=Decimal("10.00"),
                balance_before=balance, balance_after=balance + 10, timestamp=day(n)
            )
            balance += 10

    def test_account_ledger_queries(self):
        assert len(self.ledger.get_account_ledger(self.account.id)) == 3
        assert self.ledger.get_account_ledger_entry_count(self.account.id) == 3
        assert len(self.ledger.get_account_ledger_by_date_range(self.account.id, day(2), day(3))) == 2
        assert len(self.ledger.get_ledger_by_movement(1)) == 1

    def test_date_range_validation(self):
        with pytest.raises(InvalidDateRangeError):
            self.ledger.get_account_ledger_by_date_range(self.account.id, day(5), day(1))
        with pytest.raises(InvalidDateRangeError):
            self.ledger.get_ledger_by_accounts_and_date_range([self.account.id], day(5), day(1))

    def test_multi_account_query_requires_ids(self):
        with pytest.raises(ValueError):
            self.ledger.get_ledger_by_accounts_and_date_range([], day(1), day(5))

    def test_naive_bounds_are_treated_as_utc(self):
        start = datetime(2026, 3, 2, 12, 0)
        end = start + timedelta(days=1)
        assert len(self.ledger.get_account_ledger_by_date_range(self.account.id, start, end)) == 2

    def test_verify_valid_chain(self):
        result = self.ledger.verify_account_chain(self.account.id)
        assert result.is_valid
        assert result.entry_count == 3

    def test_verify_detects_gap_and_balance_mismatch(self):
        # Entry that does not start where the previous one ended
        self.ledger_store.append(
            movement_id=99, account_id=self.account.id, entry_type=EntryType.CREDIT,
            amount=Decimal("5.00"), balance_before=Decimal("100.00"),
            balance_after=Decimal("105.00"), timestamp=day(4)
        )

        result = self.ledger.verify_account_chain(self.account.id)

        assert not result.is_valid
        assert any("starts at 100.00" in p for p in result.problems)
        assert any("differs from last entry" in p for p in result.problems)

    def test_find_orphaned_entries(self):
        assert self.ledger.find_orphaned_entries() == []

        self.movements.delete(2)

        orphans = self.ledger.find_orphaned_entries(self.account.id)
        assert [e.movement_id for e in orphans] == [2]
