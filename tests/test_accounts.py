"""
Tests for account records, the account store and account management
"""

import pytest
from decimal import Decimal

from account_ledger.storage import InMemoryStorage, SQLiteStorage
from account_ledger.customers import InMemoryCustomerDirectory
from account_ledger.accounts import Account, AccountManager, AccountStore, AccountType
from account_ledger.exceptions import (
    AccountNotFoundError, CustomerNotFoundError, DuplicateAccountError, InvalidAmountError
)


class TestAccountStore:
    """Test keyed account storage"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.store = AccountStore(self.storage)

    def test_insert_and_get(self):
        account = self.store.insert("1000000001", AccountType.SAVINGS, Decimal("150.5"), customer_id=1)

        assert account.id == 1
        assert account.balance == Decimal("150.50")

        loaded = self.store.get(account.id)
        assert isinstance(loaded, Account)
        assert loaded.account_number == "1000000001"
        assert loaded.account_type == AccountType.SAVINGS
        assert loaded.balance == Decimal("150.50")
        assert loaded.active is True

    def test_lookups_return_none_or_empty(self):
        assert self.store.get(42) is None
        assert self.store.get_by_number("0000000000") is None
        assert self.store.find_by_customer(5) == []

    def test_find_by_customer_and_number(self):
        a = self.store.insert("1000000001", AccountType.SAVINGS, Decimal("0"), customer_id=1)
        b = self.store.insert("1000000002", AccountType.CHECKING, Decimal("0"), customer_id=1)
        self.store.insert("1000000003", AccountType.CREDIT, Decimal("0"), customer_id=2)

        assert [acc.id for acc in self.store.find_by_customer(1)] == [a.id, b.id]
        assert self.store.get_by_number("1000000002").id == b.id
        assert self.store.find_by_number_excluding("1000000002", b.id) is None
        assert self.store.find_by_number_excluding("1000000002", a.id).id == b.id
        assert len(self.store.list_all()) == 3

    def test_update_persists_changes(self):
        account = self.store.insert("1000000001", AccountType.SAVINGS, Decimal("10"), customer_id=1)
        account.balance = Decimal("25.00")
        account.active = False
        self.store.update(account)

        loaded = self.store.get(account.id)
        assert loaded.balance == Decimal("25.00")
        assert loaded.active is False
        assert loaded.updated_at >= loaded.created_at


class TestAccountManager:
    """Test account opening and maintenance"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.store = AccountStore(self.storage)
        self.customers = InMemoryCustomerDirectory()
        self.customers.register(1, "Jose Lema")
        self.customers.register(2, "Marianela Montalvo")
        self.manager = AccountManager(self.store, self.customers)

    def test_create_account(self):
        account = self.manager.create_account(
            customer_id=1,
            account_number="478758000001",
            account_type=AccountType.SAVINGS,
            initial_balance="2000"
        )

        assert account.balance == Decimal("2000.00")
        assert account.customer_id == 1
        assert self.manager.get_account(account.id).account_number == "478758000001"
        assert self.manager.get_account_by_number("478758000001").id == account.id

    def test_create_account_negative_balance_rejected(self):
        with pytest.raises(InvalidAmountError):
            self.manager.create_account(1, "478758000001", AccountType.SAVINGS, Decimal("-1.00"))
        assert self.manager.list_accounts() == []

    @pytest.mark.parametrize("balance", [Decimal("1e30"), "abc", 2.5])
    def test_create_account_malformed_balance_rejected(self, balance):
        with pytest.raises(InvalidAmountError):
            self.manager.create_account(1, "478758000001", AccountType.SAVINGS, balance)
        assert self.manager.list_accounts() == []

    def test_create_account_duplicate_number_rejected(self):
        self.manager.create_account(1, "478758000001", AccountType.SAVINGS, Decimal("0"))
        with pytest.raises(DuplicateAccountError):
            self.manager.create_account(2, "478758000001", AccountType.CHECKING, Decimal("0"))

    def test_create_account_unknown_customer_rejected(self):
        with pytest.raises(CustomerNotFoundError):
            self.manager.create_account(99, "478758000001", AccountType.SAVINGS, Decimal("0"))
        assert self.manager.list_accounts() == []

    def test_list_customer_accounts(self):
        self.manager.create_account(1, "478758000001", AccountType.SAVINGS, Decimal("0"))
        self.manager.create_account(1, "478758000002", AccountType.CHECKING, Decimal("0"))
        self.manager.create_account(2, "478758000003", AccountType.SAVINGS, Decimal("0"))

        assert len(self.manager.list_customer_accounts(1)) == 2
        assert len(self.manager.list_customer_accounts(2)) == 1
        assert self.manager.list_customer_accounts(3) == []

    def test_update_account(self):
        account = self.manager.create_account(1, "478758000001", AccountType.SAVINGS, Decimal("100"))

        updated = self.manager.update_account(
            account.id, account_number="478758000009", account_type=AccountType.CHECKING
        )

        assert updated.account_number == "478758000009"
        assert updated.account_type == AccountType.CHECKING
        assert updated.balance == Decimal("100.00")
        assert self.manager.get_account_by_number("478758000001") is None

    def test_update_account_duplicate_number_rejected(self):
        first = self.manager.create_account(1, "478758000001", AccountType.SAVINGS, Decimal("0"))
        self.manager.create_account(1, "478758000002", AccountType.SAVINGS, Decimal("0"))

        with pytest.raises(DuplicateAccountError):
            self.manager.update_account(first.id, account_number="478758000002")

        assert self.manager.get_account(first.id).account_number == "478758000001"

    def test_update_missing_account(self):
        with pytest.raises(AccountNotFoundError):
            self.manager.update_account(404, active=False)

    def test_deactivate_account_is_logical(self):
        account = self.manager.create_account(1, "478758000001", AccountType.SAVINGS, Decimal("50"))

        self.manager.deactivate_account(account.id)

        stored = self.manager.get_account(account.id)
        assert stored is not None
        assert stored.active is False
        assert stored.balance == Decimal("50.00")


class TestAccountManagerSQLite:
    """Account management against SQLite persistence"""

    def test_create_and_reload(self):
        storage = SQLiteStorage(":memory:")
        customers = InMemoryCustomerDirectory()
        customers.register(1, "Jose Lema")
        manager = AccountManager(AccountStore(storage), customers)

        account = manager.create_account(1, "478758000001", AccountType.CREDIT, Decimal("12.345"))

        reloaded = AccountStore(storage).get_by_number("478758000001")
        assert reloaded.id == account.id
        assert reloaded.balance == Decimal("12.35")
        assert reloaded.account_type == AccountType.CREDIT
        storage.close()
