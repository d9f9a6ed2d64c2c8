"""Decimal helpers for ledger math."""

from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")


def to_decimal(value) -> Decimal | None:
    """Convert a numeric-ish value to a finite Decimal.

    Floats go through ``str()`` so binary artifacts (0.1 + 0.2) never reach
    the lot math. Returns None for missing, non-finite or unparseable input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    return number if number.is_finite() else None


def positive_or_none(value) -> Decimal | None:
    """Return the value as a Decimal when it is finite and > 0, else None."""
    number = to_decimal(value)
    if number is None or number <= 0:
        return None
    return number


def decimal_or_zero(value) -> Decimal:
    number = to_decimal(value)
    return ZERO if number is None else number
