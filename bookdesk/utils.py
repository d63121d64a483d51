"""Shared utilities used across the booking engine."""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from bookdesk.config import settings

Number = Union[Decimal, int, float, str]

CENTS = Decimal("0.01")

# date.weekday(): Monday == 0
WEEKDAY_KEYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric input to Decimal without binary float noise.

    Examples:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("12.50")
        Decimal('12.50')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    try:
        if isinstance(value, float):
            return Decimal(repr(value))
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a numeric amount: {value!r}") from None


def to_money(value: Number) -> Decimal:
    """Round an amount to two decimal places, half-up.

    Examples:
        >>> to_money("2.675")
        Decimal('2.68')
        >>> to_money(275)
        Decimal('275.00')
    """
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Number) -> str:
    """Render an amount for display; negative amounts keep their sign.

    Examples:
        >>> format_money(275)
        '$275.00'
        >>> format_money(-25)
        '-$25.00'
    """
    amount = to_money(value)
    symbol = settings.pricing.currency_symbol
    if amount < 0:
        return f"-{symbol}{-amount:,.2f}"
    return f"{symbol}{amount:,.2f}"


def is_valid_date(value: str) -> bool:
    """Validate a literal calendar date in YYYY-MM-DD format."""
    try:
        datetime.strptime(value.strip(), "%Y-%m-%d")
        return True
    except (ValueError, AttributeError):
        return False


def is_valid_time(value: str) -> bool:
    """Validate a wall-clock time in HH:MM format."""
    try:
        datetime.strptime(value.strip(), "%H:%M")
        return True
    except (ValueError, AttributeError):
        return False


def weekday_key(date_str: str) -> str:
    """Return the three-letter day key (SUN..SAT) for a literal date.

    The date string is parsed as a plain calendar date; no time zone is
    involved, so the weekday never shifts.

    Examples:
        >>> weekday_key("2025-01-01")
        'WED'
    """
    parsed = date.fromisoformat(date_str)
    return WEEKDAY_KEYS[parsed.weekday()]


def blank_to_none(value: Optional[object]) -> Optional[object]:
    """Map empty user input ("" / whitespace / None) to an explicit None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value
