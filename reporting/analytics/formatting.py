"""
Display Formatting

String rendering for currency, numbers, percentages and relative dates.
None of these raise: unusable input renders as a fixed fallback.
"""

import math
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional, Union

PLACEHOLDER = "—"
NO_DATA = "No data available"
NOT_AVAILABLE = "N/A"
CURRENCY_FALLBACK = "$0.00"
NUMBER_FALLBACK = "0"

SECONDS_PER_DAY = 86400

DateLike = Union[date, datetime, str]


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse numbers and numeric strings; None for anything non-finite or unparsable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, int):
            number = Decimal(value)
        elif isinstance(value, float):
            if not math.isfinite(value):
                return None
            number = Decimal(repr(value))
        elif isinstance(value, str):
            number = Decimal(value.strip())
        else:
            return None
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def _round(number: Decimal, places: int) -> Decimal:
    # Enough digits for every integer digit plus the requested places
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, number.adjusted() + places + 2)
        exponent = Decimal(1).scaleb(-places) if places > 0 else Decimal(1)
        return number.quantize(exponent, rounding=ROUND_HALF_UP)


def _grouped(number: Decimal, places: int) -> str:
    rounded = _round(number, places)
    text = f"{abs(rounded):,.{places}f}"
    if rounded < 0:
        return f"-{text}"
    return text


def format_currency(value: Any, show_cents: bool = True) -> str:
    """
    Format as USD, e.g. "$1,234.56" or "-$5.00".

    Args:
        value: Number or numeric string
        show_cents: Two decimals when True, whole dollars otherwise

    Returns:
        Currency string, "$0.00" for unusable input
    """
    number = to_decimal(value)
    if number is None:
        return CURRENCY_FALLBACK
    places = 2 if show_cents else 0
    try:
        text = _grouped(number, places)
    except InvalidOperation:
        return CURRENCY_FALLBACK
    if text.startswith("-"):
        return f"-${text[1:]}"
    return f"${text}"


def format_number(value: Any, decimals: int = 0) -> str:
    """Thousands-grouped number, "0" for unusable input."""
    number = to_decimal(value)
    if number is None:
        return NUMBER_FALLBACK
    try:
        return _grouped(number, max(decimals, 0))
    except InvalidOperation:
        return NUMBER_FALLBACK


def format_percentage(value: Any, decimals: int = 1) -> str:
    """Percentage such as "12.5%"; "N/A" when the value is unknown."""
    number = to_decimal(value)
    if number is None:
        return NOT_AVAILABLE
    try:
        return f"{_grouped(number, max(decimals, 0))}%"
    except InvalidOperation:
        return NOT_AVAILABLE


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def days_ago(value: Any, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since value, floored; None if value is not a date."""
    moment = _to_datetime(value)
    if moment is None:
        return None
    reference = now or datetime.now()
    if (moment.tzinfo is None) != (reference.tzinfo is None):
        moment = moment.replace(tzinfo=reference.tzinfo)
    return math.floor((reference - moment).total_seconds() / SECONDS_PER_DAY)


def format_days_ago(value: Any, now: Optional[datetime] = None) -> str:
    days = days_ago(value, now)
    if days is None:
        return PLACEHOLDER
    if days == 0:
        return "today"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


def format_date(value: Any) -> str:
    """Date as "Jan 5, 2025"."""
    moment = _to_datetime(value)
    if moment is None:
        return PLACEHOLDER
    return f"{moment:%b} {moment.day}, {moment.year}"


def placeholder(value: Any) -> Any:
    """Value itself, or the dash placeholder when it is missing."""
    if value is None or value == "":
        return PLACEHOLDER
    return value
