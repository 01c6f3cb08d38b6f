"""
Amount and Timestamp Helpers

Exact Decimal handling for ledger amounts. All balances and movement amounts
carry exactly two fractional digits and are rounded ROUND_HALF_UP. NEVER uses
float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from datetime import datetime, timezone
from typing import Union

# Set global decimal context for financial precision
getcontext().prec = 28

AMOUNT_PRECISION = 2
_QUANTUM = Decimal('0.1') ** AMOUNT_PRECISION

ZERO = Decimal('0.00')


def to_amount(value: Union[Decimal, int, str]) -> Decimal:
    """
    Convert a value to a ledger amount with two fractional digits.

    Floats are rejected; pass a string or Decimal instead.

    Raises:
        TypeError: If value is a float
        ValueError: If value is not a finite decimal number or is too large
    """
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be floats")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Invalid decimal amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid decimal amount: {value!r}")
    try:
        return amount.quantize(_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More integer digits than the context precision can hold
        raise ValueError(f"Amount out of range: {value!r}")


def format_amount(amount: Decimal) -> str:
    """Render an amount with exactly two fractional digits"""
    return f"{to_amount(amount):.{AMOUNT_PRECISION}f}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime"""
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value))
