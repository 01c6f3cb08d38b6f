"""
Pydantic schemas for API requests and responses
"""

from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from ..accounts import Account
from ..movements import Movement
from ..ledger import ChainVerification, LedgerEntry
from ..money import format_amount

ACCOUNT_NUMBER_PATTERN = r"^[0-9]{10,20}$"
ACCOUNT_TYPE_PATTERN = r"^(SAVINGS|CHECKING|CREDIT)$"


# Account schemas
class CreateAccountRequest(BaseModel):
    account_number: str = Field(..., pattern=ACCOUNT_NUMBER_PATTERN, description="10-20 digits")
    account_type: str = Field(..., pattern=ACCOUNT_TYPE_PATTERN, description="SAVINGS, CHECKING or CREDIT")
    initial_balance: Decimal
    active: bool
    customer_id: int


class UpdateAccountRequest(BaseModel):
    account_number: Optional[str] = Field(None, pattern=ACCOUNT_NUMBER_PATTERN)
    account_type: Optional[str] = Field(None, pattern=ACCOUNT_TYPE_PATTERN)
    active: Optional[bool] = None


class AccountResponse(BaseModel):
    id: int
    account_number: str
    account_type: str
    balance: str = Field(..., description="Decimal amount as string")
    active: bool
    customer_id: int

    @classmethod
    def from_account(cls, account: Account) -> 'AccountResponse':
        return cls(
            id=account.id,
            account_number=account.account_number,
            account_type=account.account_type.value,
            balance=format_amount(account.balance),
            active=account.active,
            customer_id=account.customer_id
        )


# Movement schemas
class MovementRequest(BaseModel):
    account_id: int
    amount: Decimal = Field(..., description="Negative for a debit, positive for a credit")


class MovementResponse(BaseModel):
    id: int
    account_id: int
    date_time: str
    movement_type: str
    amount: str
    balance: str
    reversal_of: Optional[int] = None

    @classmethod
    def from_movement(cls, movement: Movement) -> 'MovementResponse':
        return cls(
            id=movement.id,
            account_id=movement.account_id,
            date_time=movement.occurred_at.isoformat(),
            movement_type=movement.kind.label,
            amount=format_amount(movement.amount),
            balance=format_amount(movement.resulting_balance),
            reversal_of=movement.reversal_of
        )


# Ledger schemas
class LedgerEntryResponse(BaseModel):
    id: int
    timestamp: str
    movement_id: int
    account_id: int
    entry_type: str
    amount: str
    balance_before: str
    balance_after: str
    description: str
    initiated_by: str

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> 'LedgerEntryResponse':
        return cls(
            id=entry.id,
            timestamp=entry.timestamp.isoformat(),
            movement_id=entry.movement_id,
            account_id=entry.account_id,
            entry_type=entry.entry_type.value,
            amount=format_amount(entry.amount),
            balance_before=format_amount(entry.balance_before),
            balance_after=format_amount(entry.balance_after),
            description=entry.description,
            initiated_by=entry.initiated_by
        )


class ChainVerificationResponse(BaseModel):
    account_id: int
    entry_count: int
    valid: bool
    problems: List[str]

    @classmethod
    def from_result(cls, result: ChainVerification) -> 'ChainVerificationResponse':
        return cls(
            account_id=result.account_id,
            entry_count=result.entry_count,
            valid=result.is_valid,
            problems=result.problems
        )
