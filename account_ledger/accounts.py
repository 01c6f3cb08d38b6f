"""
Account Management Module

Account records and their store, plus the account-opening workflow. Balances
here are the live running balance; they are only ever changed by the movement
processor, inside the same transaction that appends the matching ledger entry.
Accounts are never physically deleted, only deactivated.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union
from enum import Enum
from contextlib import contextmanager
import threading

from .storage import StorageInterface, StorageRecord
from .customers import CustomerDirectory
from .exceptions import AccountNotFoundError, DuplicateAccountError, InvalidAmountError
from .money import ZERO, to_amount, utc_now
from .logging_config import get_logger, log_action


class AccountType(Enum):
    """Banking product types offered to customers"""
    SAVINGS = "SAVINGS"
    CHECKING = "CHECKING"
    CREDIT = "CREDIT"


@dataclass
class Account(StorageRecord):
    """Customer bank account with its running balance"""
    account_number: str
    account_type: AccountType
    balance: Decimal
    customer_id: int
    active: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=int(data['id']),
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            account_number=data['account_number'],
            account_type=AccountType(data['account_type']),
            balance=Decimal(data['balance']),
            customer_id=int(data['customer_id']),
            active=bool(data.get('active', True))
        )


class AccountStore:
    """
    Durable keyed storage of account records

    Also hands out one lock per account so balance read-modify-write cycles
    against the same account run one at a time. A lock lives in the map only
    while some caller holds or waits on it.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "accounts"
        self._locks: Dict[int, List[Any]] = {}  # account_id -> [lock, holders]
        self._locks_guard = threading.Lock()

        self.storage.create_index(self.table_name, ["account_number"])
        self.storage.create_index(self.table_name, ["customer_id"])

    @contextmanager
    def lock(self, account_id: int) -> Iterator[None]:
        """Serialize work on one account"""
        with self._locks_guard:
            entry = self._locks.get(account_id)
            if entry is None:
                entry = self._locks[account_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[account_id]

    def get(self, account_id: int) -> Optional[Account]:
        data = self.storage.load(self.table_name, account_id)
        return Account.from_dict(data) if data else None

    def get_for_update(self, account_id: int) -> Optional[Account]:
        """Load an account and hold its row lock until the transaction ends"""
        data = self.storage.load_for_update(self.table_name, account_id)
        return Account.from_dict(data) if data else None

    def get_by_number(self, account_number: str) -> Optional[Account]:
        found = self.storage.find(self.table_name, {"account_number": account_number})
        return Account.from_dict(found[0]) if found else None

    def find_by_number_excluding(self, account_number: str, account_id: int) -> Optional[Account]:
        """Find another account already using account_number"""
        for data in self.storage.find(self.table_name, {"account_number": account_number}):
            if int(data['id']) != account_id:
                return Account.from_dict(data)
        return None

    def find_by_customer(self, customer_id: int) -> List[Account]:
        found = self.storage.find(self.table_name, {"customer_id": customer_id})
        return sorted((Account.from_dict(data) for data in found), key=lambda a: a.id)

    def list_all(self) -> List[Account]:
        accounts = [Account.from_dict(data) for data in self.storage.load_all(self.table_name)]
        return sorted(accounts, key=lambda a: a.id)

    def insert(
        self,
        account_number: str,
        account_type: AccountType,
        balance: Decimal,
        customer_id: int,
        active: bool = True
    ) -> Account:
        now = utc_now()
        account = Account(
            id=self.storage.next_id(self.table_name),
            created_at=now,
            updated_at=now,
            account_number=account_number,
            account_type=account_type,
            balance=to_amount(balance),
            customer_id=customer_id,
            active=active
        )
        self.storage.insert(self.table_name, account.id, account.to_dict())
        return account

    def update(self, account: Account) -> Account:
        account.updated_at = utc_now()
        self.storage.save(self.table_name, account.id, account.to_dict())
        return account


class AccountManager:
    """
    Account opening, maintenance and logical deletion
    """

    def __init__(self, store: AccountStore, customer_directory: CustomerDirectory):
        self.store = store
        self.storage = store.storage
        self.customer_directory = customer_directory
        self.logger = get_logger("ledger.accounts")

    def create_account(
        self,
        customer_id: int,
        account_number: str,
        account_type: AccountType,
        initial_balance: Union[Decimal, str, int] = ZERO,
        active: bool = True
    ) -> Account:
        """
        Open a new account for an existing customer

        Args:
            customer_id: Owner of the account
            account_number: Unique account number
            account_type: SAVINGS, CHECKING or CREDIT
            initial_balance: Opening balance, must not be negative
            active: Whether the account starts active

        Returns:
            Created Account

        Raises:
            InvalidAmountError: If the opening balance is negative or not a decimal number
            DuplicateAccountError: If the account number is taken
            CustomerNotFoundError: If the customer does not exist
            CustomerServiceUnavailableError: If the customer lookup fails
        """
        try:
            balance = to_amount(initial_balance)
        except (TypeError, ValueError) as e:
            raise InvalidAmountError(str(e)) from e
        if balance < ZERO:
            raise InvalidAmountError("Initial balance cannot be negative")

        if self.store.get_by_number(account_number):
            message = f"Account number '{account_number}' already exists."
            self.logger.warning(message)
            raise DuplicateAccountError(message)

        customer = self.customer_directory.find_customer_by_id(customer_id)

        with self.storage.atomic():
            # Re-check inside the transaction so concurrent openings cannot share a number
            if self.store.get_by_number(account_number):
                raise DuplicateAccountError(f"Account number '{account_number}' already exists.")
            account = self.store.insert(
                account_number=account_number,
                account_type=account_type,
                balance=balance,
                customer_id=customer.customer_id,
                active=active
            )

        log_action(
            self.logger, "info", f"Account created: {account_number}",
            action="create_account", resource=f"account:{account.id}",
            extra={
                "account_number": account_number,
                "account_type": account_type.value,
                "customer_id": customer_id,
                "initial_balance": str(balance)
            }
        )
        return account

    def get_account(self, account_id: int) -> Optional[Account]:
        return self.store.get(account_id)

    def get_account_by_number(self, account_number: str) -> Optional[Account]:
        return self.store.get_by_number(account_number)

    def list_accounts(self) -> List[Account]:
        return self.store.list_all()

    def list_customer_accounts(self, customer_id: int) -> List[Account]:
        return self.store.find_by_customer(customer_id)

    def update_account(
        self,
        account_id: int,
        account_number: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        active: Optional[bool] = None
    ) -> Account:
        """
        Update descriptive account fields. The balance is not editable here.

        Raises:
            AccountNotFoundError: If the account does not exist
            DuplicateAccountError: If another account already uses the new number
        """
        with self.store.lock(account_id), self.storage.atomic():
            account = self.store.get_for_update(account_id)
            if not account:
                raise AccountNotFoundError(f"Account not found with id: {account_id}")

            if account_number is not None and account_number != account.account_number:
                if self.store.find_by_number_excluding(account_number, account_id):
                    message = (f"Cannot update. Another account with number "
                               f"'{account_number}' already exists.")
                    self.logger.warning(message)
                    raise DuplicateAccountError(message)
                account.account_number = account_number

            if account_type is not None:
                account.account_type = account_type
            if active is not None:
                account.active = active

            self.store.update(account)

        self.logger.info(f"Updated account with id: {account_id}")
        return account

    def deactivate_account(self, account_id: int) -> Account:
        """Logically delete an account by flipping its status"""
        account = self.update_account(account_id, active=False)
        log_action(
            self.logger, "info", f"Account deactivated: {account.account_number}",
            action="deactivate_account", resource=f"account:{account_id}"
        )
        return account
