"""
Movement Processing Module

Applies movements to account balances. Every accepted movement writes the new
account balance, the movement record and exactly one ledger entry inside a
single storage transaction, so the balance and the audit trail can never
diverge. Balances may never go below zero.
"""

from decimal import Decimal
from datetime import datetime
from typing import Callable, List, Optional, Union

from .accounts import AccountStore
from .movements import Movement, MovementStore
from .ledger import EntryType, LedgerStore
from .exceptions import (
    AccountNotFoundError, InsufficientBalanceError, InvalidAmountError,
    LedgerError, MovementDeletionForbiddenError, MovementNotFoundError,
    PersistenceError
)
from .money import ZERO, format_amount, to_amount, utc_now
from .logging_config import get_logger, log_action


class MovementProcessor:
    """
    Registers, looks up, reverses and deletes movements

    Work on the same account is serialized by the account store's per-account
    lock, which is always taken before the storage transaction.
    """

    def __init__(
        self,
        account_store: AccountStore,
        movement_store: MovementStore,
        ledger_store: LedgerStore,
        initiated_by: str = "SYSTEM",
        allow_deletion: bool = True,
        clock: Callable[[], datetime] = utc_now
    ):
        self.account_store = account_store
        self.movement_store = movement_store
        self.ledger_store = ledger_store
        self.storage = account_store.storage
        self.initiated_by = initiated_by
        self.allow_deletion = allow_deletion
        self.clock = clock
        self.logger = get_logger("ledger.transactions")

    def register_movement(
        self,
        account_id: int,
        amount: Union[Decimal, str, int],
        reversal_of: Optional[int] = None
    ) -> Movement:
        """
        Apply a signed amount to an account

        Args:
            account_id: Target account
            amount: Negative for a debit, positive for a credit
            reversal_of: Id of the movement this one compensates, if any

        Returns:
            The persisted Movement with its resulting balance

        Raises:
            InvalidAmountError: If the amount is zero or not a decimal number
            AccountNotFoundError: If the account does not exist
            InsufficientBalanceError: If a debit would make the balance negative
            PersistenceError: If the store fails; nothing is written
        """
        try:
            amount = to_amount(amount)
        except (TypeError, ValueError) as e:
            raise InvalidAmountError(str(e)) from e

        self.logger.info(f"Attempting to register a movement of amount {amount} for account id: {account_id}")

        if amount == ZERO:
            self.logger.warning(f"The movement amount cannot be zero for account id: {account_id}")
            raise InvalidAmountError("The movement amount cannot be zero.")

        with self.account_store.lock(account_id):
            try:
                with self.storage.atomic():
                    movement, balance_before = self._apply(account_id, amount, reversal_of)
            except LedgerError:
                raise
            except Exception as e:
                self.logger.error(f"Movement for account {account_id} rolled back: {e}")
                raise PersistenceError(f"Movement could not be persisted: {e}") from e

        log_action(
            self.logger, "info",
            f"Movement successfully registered with id: {movement.id}. "
            f"Previous balance: {balance_before}, New balance: {movement.resulting_balance}",
            action="register_movement", resource=f"account:{account_id}",
            extra={
                "movement_id": movement.id,
                "kind": movement.kind.value,
                "amount": str(amount),
                "balance_before": str(balance_before),
                "balance_after": str(movement.resulting_balance)
            }
        )
        return movement

    def _apply(self, account_id: int, amount: Decimal, reversal_of: Optional[int]):
        """Validate and write the {account, movement, ledger entry} set; runs inside atomic()"""
        account = self.account_store.get_for_update(account_id)
        if not account:
            raise AccountNotFoundError(f"Account not found with id: {account_id}")

        balance_before = account.balance
        candidate = balance_before + amount
        kind = EntryType.from_amount(amount)

        if kind == EntryType.DEBIT and candidate < ZERO:
            log_action(
                self.logger, "warning",
                f"Insufficient balance for debit movement. Current balance: {balance_before}, "
                f"Requested amount: {amount}",
                action="reject_movement", resource=f"account:{account_id}"
            )
            raise InsufficientBalanceError(
                "Insufficient balance",
                details={"balance": str(balance_before), "amount": str(amount)}
            )

        occurred_at = self.clock()

        account.balance = candidate
        self.account_store.update(account)

        movement = self.movement_store.insert(
            account_id=account_id,
            amount=amount,
            resulting_balance=candidate,
            occurred_at=occurred_at,
            reversal_of=reversal_of
        )

        self.ledger_store.append(
            movement_id=movement.id,
            account_id=account_id,
            entry_type=kind,
            amount=abs(amount),
            balance_before=balance_before,
            balance_after=candidate,
            description=f"{kind.label} of {format_amount(amount)} on account {account.account_number}",
            initiated_by=self.initiated_by,
            timestamp=occurred_at
        )
        return movement, balance_before

    def reverse_movement(self, movement_id: int) -> Movement:
        """
        Compensate a movement with one of the opposite sign

        The original movement and its ledger entry stay untouched; the
        reversal gets its own movement and ledger entry.

        Raises:
            MovementNotFoundError: If the movement does not exist
            InsufficientBalanceError: If reversing a credit would overdraw the account
        """
        original = self.movement_store.get(movement_id)
        if not original:
            raise MovementNotFoundError(f"Movement not found with ID: {movement_id}")

        reversal = self.register_movement(original.account_id, -original.amount, reversal_of=original.id)
        log_action(
            self.logger, "info", f"Movement {movement_id} reversed by movement {reversal.id}",
            action="reverse_movement", resource=f"movement:{movement_id}",
            extra={"reversal_movement_id": reversal.id}
        )
        return reversal

    def delete_movement(self, movement_id: int) -> None:
        """
        Remove a movement record

        Only the movement row is removed; its ledger entry stays in the
        append-only ledger and becomes orphaned. Use reverse_movement() to
        correct a balance.

        Raises:
            MovementNotFoundError: If the movement does not exist
            MovementDeletionForbiddenError: If deletion is disabled by configuration
        """
        self.logger.warning(
            f"Attempting to delete a movement with ID: {movement_id}. "
            f"This is not recommended for financial records."
        )
        movement = self.movement_store.get(movement_id)
        if not movement:
            self.logger.error(f"Failed to delete movement: Movement not found with ID: {movement_id}")
            raise MovementNotFoundError(f"Movement not found with ID: {movement_id}")

        if not self.allow_deletion:
            raise MovementDeletionForbiddenError(
                f"Movement {movement_id} is settled; record a reversal instead of deleting it"
            )

        try:
            with self.storage.atomic():
                self.movement_store.delete(movement_id)
        except Exception as e:
            raise PersistenceError(f"Movement could not be deleted: {e}") from e

        orphaned = [entry.id for entry in self.ledger_store.find_by_movement(movement_id)]
        log_action(
            self.logger, "warning",
            f"Successfully deleted movement with ID: {movement_id}; ledger entries left in place",
            action="delete_movement", resource=f"movement:{movement_id}",
            extra={"account_id": movement.account_id, "orphaned_ledger_entries": orphaned}
        )

    def get_movement(self, movement_id: int) -> Optional[Movement]:
        movement = self.movement_store.get(movement_id)
        if movement is None:
            self.logger.warning(f"Movement not found for ID: {movement_id}")
        return movement

    def list_movements(self) -> List[Movement]:
        return self.movement_store.list_all()

    def list_account_movements(self, account_id: int) -> List[Movement]:
        return self.movement_store.find_by_account(account_id)
