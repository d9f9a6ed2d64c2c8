"""Shared timestamp coercion utilities.

Ledger math works on epoch milliseconds. Upstream records arrive with
whatever the connector produced: integer ms, float ms, numeric strings,
ISO 8601 strings or datetime objects. Everything is funnelled through
``coerce_epoch_ms`` so the ledger builder only ever sees ``int | None``.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Numeric timestamps at or above 1e16 ms are rejected as noise.
_MAX_MS_EXPONENT = 15


def parse_iso_datetime(value) -> datetime | None:
    """Parse an ISO 8601 string (or date/datetime object) to a UTC-aware datetime.

    Handles:
    - Z suffix ("2024-01-15T10:30:00Z")
    - +0000 no-colon offset ("2024-01-15T10:30:00+0000")
    - Standard ISO with colon offset ("2024-06-28 18:42:46+00:00")
    - Date-only strings ("2024-06-28")
    - datetime/date objects passed through with UTC normalisation

    Returns:
        A timezone-aware datetime, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    value_str = str(value).strip()

    if value_str.endswith("Z"):
        value_str = value_str[:-1] + "+00:00"

    if (
        len(value_str) >= 5
        and value_str[-5] in ("+", "-")
        and value_str[-4:].isdigit()
    ):
        value_str = value_str[:-2] + ":" + value_str[-2:]

    try:
        dt = datetime.fromisoformat(value_str)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def datetime_to_ms(dt: datetime) -> int:
    """Convert a datetime (naive = UTC) to epoch milliseconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def ms_to_datetime(ms: int) -> datetime:
    """Convert epoch milliseconds to a UTC-aware datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def date_to_ms(d: date, end_of_day: bool = False) -> int:
    """Epoch ms at UTC midnight of ``d``, or its last millisecond when ``end_of_day``."""
    if end_of_day:
        return datetime_to_ms(datetime.combine(d, time.max, tzinfo=timezone.utc))
    return datetime_to_ms(datetime.combine(d, time.min, tzinfo=timezone.utc))


def coerce_epoch_ms(value) -> int | None:
    """Coerce a record timestamp to integer epoch milliseconds.

    Numbers (and numeric strings) are taken to already be epoch ms.
    Non-finite or out-of-range numbers and unparseable values yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, date)):
        return datetime_to_ms(parse_iso_datetime(value))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _decimal_to_ms(Decimal(value)) if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return _decimal_to_ms(value)

    value_str = str(value).strip()
    if not value_str:
        return None
    try:
        number = Decimal(value_str)
    except InvalidOperation:
        dt = parse_iso_datetime(value_str)
        return datetime_to_ms(dt) if dt is not None else None
    return _decimal_to_ms(number)


def _decimal_to_ms(number: Decimal) -> int | None:
    if not number.is_finite() or number.adjusted() > _MAX_MS_EXPONENT:
        return None
    return int(number)
