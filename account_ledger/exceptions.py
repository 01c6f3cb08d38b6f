"""
Ledger Error Hierarchy

Every failure the ledger core can report is a LedgerError subclass carrying a
stable machine-readable code and the HTTP status the API layer renders it with.
"""

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base exception for all ledger core failures"""

    code = "LEDGER_ERROR"
    http_status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Machine-readable representation"""
        result = {"error": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class InvalidAmountError(LedgerError):
    """Raised when a movement amount is zero or an opening balance is negative"""

    code = "INVALID_AMOUNT"
    http_status = 400


class InsufficientBalanceError(LedgerError):
    """Raised when a debit would drive the account balance below zero"""

    code = "INSUFFICIENT_BALANCE"
    http_status = 400


class AccountNotFoundError(LedgerError):
    code = "ACCOUNT_NOT_FOUND"
    http_status = 404


class MovementNotFoundError(LedgerError):
    code = "MOVEMENT_NOT_FOUND"
    http_status = 404


class SubjectNotFoundError(LedgerError):
    """Raised when no customer/account combination matches a statement request"""

    code = "SUBJECT_NOT_FOUND"
    http_status = 404


class InvalidDateRangeError(LedgerError):
    code = "INVALID_DATE_RANGE"
    http_status = 400


class PersistenceError(LedgerError):
    """Raised when the underlying store fails a read or write"""

    code = "PERSISTENCE_FAILURE"
    http_status = 500


class DuplicateAccountError(LedgerError):
    code = "DUPLICATE_ACCOUNT"
    http_status = 409


class CustomerNotFoundError(LedgerError):
    code = "CUSTOMER_NOT_FOUND"
    http_status = 404


class CustomerServiceUnavailableError(LedgerError):
    """Raised when the customer directory cannot be reached"""

    code = "CUSTOMER_SERVICE_UNAVAILABLE"
    http_status = 503


class MovementDeletionForbiddenError(LedgerError):
    """Raised when hard deletion of settled movements is disabled"""

    code = "MOVEMENT_DELETION_FORBIDDEN"
    http_status = 409
