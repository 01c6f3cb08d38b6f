"""
Tests for statement generation from the ledger
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone

from account_ledger.storage import InMemoryStorage
from account_ledger.customers import InMemoryCustomerDirectory
from account_ledger.accounts import AccountStore, AccountType
from account_ledger.movements import MovementStore
from account_ledger.ledger import LedgerStore
from account_ledger.transactions import MovementProcessor
from account_ledger.reporting import StatementBuilder
from account_ledger.exceptions import InvalidDateRangeError, SubjectNotFoundError


def day(n: int, hour: int = 12) -> datetime:
    return datetime(2026, 1, n, hour, 0, tzinfo=timezone.utc)


class SteppingClock:
    """Clock that returns whatever moment the test sets"""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class TestStatementBuilder:
    """Test statement reconstruction from ledger entries"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.accounts = AccountStore(self.storage)
        self.ledger_store = LedgerStore(self.storage)
        self.clock = SteppingClock(day(1))
        self.processor = MovementProcessor(
            self.accounts, MovementStore(self.storage), self.ledger_store, clock=self.clock
        )
        self.customers = InMemoryCustomerDirectory()
        self.customers.register(1, "Jose Lema")
        self.customers.register(2, "Marianela Montalvo")
        self.builder = StatementBuilder(self.accounts, self.ledger_store, self.customers)

        self.savings = self.accounts.insert("478758000001", AccountType.SAVINGS, Decimal("1000.00"), 1)
        self.checking = self.accounts.insert("225487000001", AccountType.CHECKING, Decimal("100.00"), 1)

    def move(self, account, amount, when):
        self.clock.moment = when
        return self.processor.register_movement(account.id, Decimal(amount))

    def test_single_debit_scenario(self):
        """Entry 1000 -> 950 on day 5 within day 1..31"""
        self.move(self.savings, "-50.00", day(5))

        statement = self.builder.build_statement(
            account_number="478758000001", start_date=day(1, 0), end_date=day(31, 0)
        )

        assert statement.client_name == "Jose Lema"
        assert len(statement.accounts) == 1
        detail = statement.accounts[0]
        assert detail.opening_balance == Decimal("1000.00")
        assert detail.closing_balance == Decimal("950.00")
        assert len(detail.lines) == 1
        line = detail.lines[0]
        assert line.amount == Decimal("-50.00")
        assert line.movement_type == "Debit"
        assert line.balance_after == Decimal("950.00")
        assert line.date == day(5)

    def test_customer_statement_covers_all_accounts(self):
        self.move(self.savings, "200.00", day(2))
        self.move(self.checking, "-40.00", day(3))
        self.move(self.savings, "-100.00", day(4))

        statement = self.builder.build_statement(customer_id=1, start_date=day(1), end_date=day(10))

        by_number = {d.account_number: d for d in statement.accounts}
        savings = by_number["478758000001"]
        assert [line.amount for line in savings.lines] == [Decimal("200.00"), Decimal("-100.00")]
        assert savings.opening_balance == Decimal("1000.00")
        assert savings.closing_balance == Decimal("1100.00")
        assert savings.net_change == Decimal("100.00")

        checking = by_number["225487000001"]
        assert checking.opening_balance == Decimal("100.00")
        assert checking.closing_balance == Decimal("60.00")
        assert checking.account_type == "CHECKING"

        assert statement.total_opening_balance == Decimal("1100.00")
        assert statement.total_closing_balance == Decimal("1160.00")
        assert statement.total_net_change == Decimal("60.00")

    def test_opening_comes_from_entries_not_live_balance(self):
        """Movements after the window do not leak into the period balances"""
        self.move(self.savings, "-100.00", day(3))
        self.move(self.savings, "-300.00", day(20))

        statement = self.builder.build_statement(
            account_number="478758000001", start_date=day(1), end_date=day(10)
        )

        detail = statement.accounts[0]
        assert detail.opening_balance == Decimal("1000.00")
        assert detail.closing_balance == Decimal("900.00")

    def test_no_entries_uses_current_balance(self):
        statement = self.builder.build_statement(
            account_number="225487000001", start_date=day(1), end_date=day(2)
        )
        detail = statement.accounts[0]
        assert detail.opening_balance == detail.closing_balance == Decimal("100.00")
        assert detail.lines == []

    def test_window_bounds_are_inclusive(self):
        self.move(self.savings, "1.00", day(1))
        self.move(self.savings, "2.00", day(2))
        self.move(self.savings, "3.00", day(3))

        statement = self.builder.build_statement(
            account_number="478758000001", start_date=day(1), end_date=day(3)
        )
        assert len(statement.accounts[0].lines) == 3

    def test_customer_without_accounts_gets_empty_statement(self):
        statement = self.builder.build_statement(customer_id=2, start_date=day(1), end_date=day(31))

        assert statement.client_name == "Marianela Montalvo"
        assert statement.accounts == []
        assert statement.total_closing_balance == Decimal("0.00")

    def test_unknown_account_with_customer_gets_empty_statement(self):
        statement = self.builder.build_statement(
            customer_id=1, account_number="999999999999", start_date=day(1), end_date=day(31)
        )
        assert statement.client_name == "Jose Lema"
        assert statement.accounts == []

    def test_unknown_account_without_customer(self):
        with pytest.raises(SubjectNotFoundError):
            self.builder.build_statement(account_number="999999999999", start_date=day(1), end_date=day(31))

    def test_unknown_customer(self):
        with pytest.raises(SubjectNotFoundError):
            self.builder.build_statement(customer_id=77, start_date=day(1), end_date=day(31))

    def test_inverted_range_rejected(self):
        with pytest.raises(InvalidDateRangeError):
            self.builder.build_statement(customer_id=1, start_date=day(10), end_date=day(1))

    def test_subject_required(self):
        with pytest.raises(ValueError):
            self.builder.build_statement(start_date=day(1), end_date=day(2))

    def test_to_dict(self):
        self.move(self.savings, "-50.00", day(5))

        data = self.builder.build_statement(
            account_number="478758000001", start_date=day(1), end_date=day(31)
        ).to_dict()

        assert data["client_name"] == "Jose Lema"
        account = data["accounts"][0]
        assert account["opening_balance"] == "1000.00"
        assert account["closing_balance"] == "950.00"
        assert account["net_change"] == "-50.00"
        assert account["movements"][0]["amount"] == "-50.00"
        assert account["movements"][0]["movement_type"] == "Debit"
        assert data["summary"]["total_net_change"] == "-50.00"
