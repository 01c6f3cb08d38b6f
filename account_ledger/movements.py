"""
Movement Records

A movement is one accepted change to an account balance. The amount is signed:
negative amounts are debits, positive amounts are credits.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .storage import StorageInterface
from .ledger import EntryType, timestamp_key
from .money import ensure_utc


@dataclass
class Movement:
    """Accepted balance change on an account"""
    id: int
    account_id: int
    amount: Decimal
    resulting_balance: Decimal
    occurred_at: datetime
    reversal_of: Optional[int] = None  # Movement this one compensates

    @property
    def kind(self) -> EntryType:
        return EntryType.from_amount(self.amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'account_id': self.account_id,
            'amount': str(self.amount),
            'resulting_balance': str(self.resulting_balance),
            'occurred_at': timestamp_key(self.occurred_at),
            'reversal_of': self.reversal_of
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Movement':
        reversal_of = data.get('reversal_of')
        return cls(
            id=int(data['id']),
            account_id=int(data['account_id']),
            amount=Decimal(data['amount']),
            resulting_balance=Decimal(data['resulting_balance']),
            occurred_at=datetime.fromisoformat(data['occurred_at']),
            reversal_of=int(reversal_of) if reversal_of is not None else None
        )


class MovementStore:
    """Keyed storage of movements"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "movements"

        self.storage.create_index(self.table_name, ["account_id"])

    def get(self, movement_id: int) -> Optional[Movement]:
        data = self.storage.load(self.table_name, movement_id)
        return Movement.from_dict(data) if data else None

    def find_by_account(self, account_id: int) -> List[Movement]:
        found = self.storage.find(self.table_name, {"account_id": account_id})
        return sorted((Movement.from_dict(d) for d in found), key=lambda m: (m.occurred_at, m.id))

    def list_all(self) -> List[Movement]:
        movements = [Movement.from_dict(d) for d in self.storage.load_all(self.table_name)]
        return sorted(movements, key=lambda m: m.id)

    def insert(
        self,
        account_id: int,
        amount: Decimal,
        resulting_balance: Decimal,
        occurred_at: datetime,
        reversal_of: Optional[int] = None
    ) -> Movement:
        movement = Movement(
            id=self.storage.next_id(self.table_name),
            account_id=account_id,
            amount=amount,
            resulting_balance=resulting_balance,
            occurred_at=ensure_utc(occurred_at),
            reversal_of=reversal_of
        )
        self.storage.insert(self.table_name, movement.id, movement.to_dict())
        return movement

    def delete(self, movement_id: int) -> bool:
        return self.storage.delete(self.table_name, movement_id)
