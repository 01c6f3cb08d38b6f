"""
Statement Reporting Module

Builds account statements for a customer or a single account over a period.
Statements are derived from ledger entries alone: opening and closing balances
come from the balance snapshots recorded on the entries, never from replaying
the live account balance.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .accounts import Account, AccountStore
from .customers import CustomerDirectory
from .ledger import LedgerEntry, LedgerStore
from .exceptions import CustomerNotFoundError, InvalidDateRangeError, SubjectNotFoundError
from .money import ZERO, ensure_utc, format_amount
from .logging_config import get_logger, log_action


@dataclass
class StatementLine:
    """One movement as shown to the customer"""
    date: datetime
    movement_type: str  # "Debit" or "Credit"
    amount: Decimal     # Debits negative
    balance_after: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "movement_type": self.movement_type,
            "amount": format_amount(self.amount),
            "balance_after": format_amount(self.balance_after)
        }


@dataclass
class AccountStatementDetail:
    """Balances and movements of one account within the statement period"""
    account_number: str
    account_type: str
    opening_balance: Decimal
    closing_balance: Decimal
    lines: List[StatementLine] = field(default_factory=list)

    @property
    def net_change(self) -> Decimal:
        return self.closing_balance - self.opening_balance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_number": self.account_number,
            "account_type": self.account_type,
            "opening_balance": format_amount(self.opening_balance),
            "closing_balance": format_amount(self.closing_balance),
            "net_change": format_amount(self.net_change),
            "movements": [line.to_dict() for line in self.lines]
        }


@dataclass
class Statement:
    """Account statement for one customer"""
    client_name: str
    start_date: datetime
    end_date: datetime
    accounts: List[AccountStatementDetail] = field(default_factory=list)

    @property
    def total_opening_balance(self) -> Decimal:
        return sum((a.opening_balance for a in self.accounts), ZERO)

    @property
    def total_closing_balance(self) -> Decimal:
        return sum((a.closing_balance for a in self.accounts), ZERO)

    @property
    def total_net_change(self) -> Decimal:
        return self.total_closing_balance - self.total_opening_balance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "client_name": self.client_name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "accounts": [a.to_dict() for a in self.accounts],
            "summary": {
                "total_opening_balance": format_amount(self.total_opening_balance),
                "total_closing_balance": format_amount(self.total_closing_balance),
                "total_net_change": format_amount(self.total_net_change)
            }
        }


class StatementBuilder:
    """
    Resolves the customer and account set for a request and assembles the
    statement from the ledger entries in the period
    """

    def __init__(self, account_store: AccountStore, ledger_store: LedgerStore,
                 customer_directory: CustomerDirectory):
        self.account_store = account_store
        self.ledger_store = ledger_store
        self.customer_directory = customer_directory
        self.logger = get_logger("ledger.reporting")

    def build_statement(
        self,
        customer_id: Optional[int] = None,
        account_number: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Statement:
        """
        Build a statement for a customer or a single account

        When an account number is given the statement covers that account only,
        and the customer is taken from the account unless customer_id is also
        given. Otherwise it covers every account of the customer. Both period
        bounds are inclusive.

        Raises:
            ValueError: If neither customer_id nor account_number is given,
                or a period bound is missing
            InvalidDateRangeError: If start_date is after end_date
            SubjectNotFoundError: If no customer can be resolved
            CustomerServiceUnavailableError: If the customer lookup fails
        """
        if start_date is None or end_date is None:
            raise ValueError("Both start_date and end_date are required")
        start_date = ensure_utc(start_date)
        end_date = ensure_utc(end_date)
        if start_date > end_date:
            raise InvalidDateRangeError(
                f"Start date {start_date.isoformat()} must not be after end date {end_date.isoformat()}"
            )
        if customer_id is None and not account_number:
            raise ValueError("Either customer_id or account_number must be provided")

        self.logger.info(
            f"Generating statement for customer_id={customer_id}, account_number={account_number}, "
            f"from {start_date.isoformat()} to {end_date.isoformat()}"
        )

        customer, accounts = self._resolve(customer_id, account_number)

        if not accounts:
            self.logger.warning(f"No accounts found for customer_id={customer_id}, account_number={account_number}")
            return Statement(client_name=customer.name, start_date=start_date, end_date=end_date)

        entries = self.ledger_store.find_by_accounts_and_range(
            [account.id for account in accounts], start_date, end_date
        )
        self.logger.info(f"Retrieved {len(entries)} ledger entries for statement")

        by_account: Dict[int, List[LedgerEntry]] = {}
        for entry in entries:
            by_account.setdefault(entry.account_id, []).append(entry)

        statement = Statement(
            client_name=customer.name,
            start_date=start_date,
            end_date=end_date,
            accounts=[self._account_detail(a, by_account.get(a.id, [])) for a in accounts]
        )

        log_action(
            self.logger, "info", f"Statement built for {customer.name}",
            action="build_statement", resource=f"customer:{customer.customer_id}",
            extra={"accounts": len(statement.accounts), "entries": len(entries)}
        )
        return statement

    def _resolve(self, customer_id: Optional[int], account_number: Optional[str]):
        account = None
        if account_number:
            account = self.account_store.get_by_number(account_number)
            accounts = [account] if account else []
        else:
            accounts = self.account_store.find_by_customer(customer_id)

        owner_id = customer_id if customer_id is not None else (account.customer_id if account else None)
        if owner_id is None:
            raise SubjectNotFoundError("Client or account not found with the given parameters.")

        try:
            customer = self.customer_directory.find_customer_by_id(owner_id)
        except CustomerNotFoundError as e:
            raise SubjectNotFoundError("Client or account not found with the given parameters.") from e
        return customer, accounts

    def _account_detail(self, account: Account, entries: List[LedgerEntry]) -> AccountStatementDetail:
        entries = sorted(entries, key=lambda e: (e.timestamp, e.id))

        if entries:
            opening = entries[0].balance_before
            closing = entries[-1].balance_after
        else:
            self.logger.warning(
                f"No ledger entries found in period for account {account.id}. Using current balance as opening."
            )
            opening = closing = account.balance

        lines = [
            StatementLine(
                date=entry.timestamp,
                movement_type=entry.entry_type.label,
                amount=entry.signed_amount,
                balance_after=entry.balance_after
            )
            for entry in entries
        ]

        self.logger.debug(
            f"Account {account.account_number}: {len(lines)} entries, opening={opening}, closing={closing}"
        )
        return AccountStatementDetail(
            account_number=account.account_number,
            account_type=account.account_type.value,
            opening_balance=opening,
            closing_balance=closing,
            lines=lines
        )