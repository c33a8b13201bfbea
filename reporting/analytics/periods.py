"""
Period Resolution

Turns a period shortcut (7d, 30d, 90d, 1y, all) or an explicit
"YYYY-MM-DD..YYYY-MM-DD" range into a concrete reporting window plus the
equal-length window immediately before it.

Unrecognized periods resolve as 30d. This never raises.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

DEFAULT_PERIOD = "30d"
ALL_TIME_START = date(1900, 1, 1)

# shortcut -> (days, years, label)
PERIOD_SHORTCUTS: Dict[str, Tuple[int, int, str]] = {
    "7d": (7, 0, "Last 7 days"),
    "30d": (30, 0, "Last 30 days"),
    "90d": (90, 0, "Last 90 days"),
    "1y": (0, 1, "Last year"),
    "all": (0, 0, "All time"),
}

TREND_GRANULARITY: Dict[str, str] = {
    "7d": "day",
    "30d": "week",
    "90d": "week",
    "1y": "month",
    "all": "quarter",
}

RANGE_SEPARATORS = ("..", ":")


@dataclass(frozen=True)
class DateWindow:
    """Resolved reporting window. Comparison bounds are None for all-time."""
    start: datetime
    end: datetime
    compare_start: Optional[datetime] = None
    compare_end: Optional[datetime] = None

    @property
    def has_comparison(self) -> bool:
        return self.compare_start is not None and self.compare_end is not None

    @property
    def length_days(self) -> int:
        """Whole days between the start and end dates."""
        return (self.end.date() - self.start.date()).days

    def as_dict(self) -> Dict[str, datetime]:
        """Window as a mapping; comparison keys are omitted when absent."""
        result = {"start": self.start, "end": self.end}
        if self.has_comparison:
            result["compareStart"] = self.compare_start
            result["compareEnd"] = self.compare_end
        return result


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def _years_before(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return value.replace(year=value.year - years, day=28)


def parse_explicit_range(period: str) -> Optional[Tuple[date, date]]:
    """Parse "YYYY-MM-DD..YYYY-MM-DD"; None if malformed or reversed."""
    for separator in RANGE_SEPARATORS:
        if separator not in period:
            continue
        head, _, tail = period.partition(separator)
        try:
            start = date.fromisoformat(head.strip())
            end = date.fromisoformat(tail.strip())
        except ValueError:
            return None
        if start > end:
            return None
        return start, end
    return None


def is_valid_period(period: Optional[str]) -> bool:
    """True for a known shortcut or a well-formed explicit range."""
    if not period:
        return False
    return period in PERIOD_SHORTCUTS or parse_explicit_range(period) is not None


def _with_comparison(start: datetime, end: datetime) -> DateWindow:
    length = (end.date() - start.date()).days
    compare_end = end_of_day(start.date() - timedelta(days=1))
    compare_start = start_of_day(start.date() - timedelta(days=length))
    return DateWindow(start=start, end=end, compare_start=compare_start, compare_end=compare_end)


def resolve_period(period: Optional[str], now: Optional[datetime] = None) -> DateWindow:
    """
    Resolve a period into a DateWindow.

    Args:
        period: Shortcut or explicit range; anything else means 30d
        now: Reference time, defaults to the current local time

    Returns:
        DateWindow whose end is today at end of day. The comparison window
        ends the day before start and starts L days before start, where L is
        the whole-day distance between start and end.
    """
    today = (now or datetime.now()).date()
    end = end_of_day(today)

    if period and period not in PERIOD_SHORTCUTS:
        explicit = parse_explicit_range(period)
        if explicit is not None:
            range_start, range_end = explicit
            return _with_comparison(start_of_day(range_start), end_of_day(range_end))

    if not period or period not in PERIOD_SHORTCUTS:
        period = DEFAULT_PERIOD

    if period == "all":
        return DateWindow(start=start_of_day(ALL_TIME_START), end=end)

    days, years, _ = PERIOD_SHORTCUTS[period]
    if years:
        start = start_of_day(_years_before(today, years))
    else:
        start = start_of_day(today - timedelta(days=days))
    return _with_comparison(start, end)


def period_label(period: Optional[str]) -> str:
    """Display label for a period; explicit ranges render as "start to end"."""
    if period in PERIOD_SHORTCUTS:
        return PERIOD_SHORTCUTS[period][2]
    explicit = parse_explicit_range(period) if period else None
    if explicit is not None:
        return f"{explicit[0].isoformat()} to {explicit[1].isoformat()}"
    return period or PERIOD_SHORTCUTS[DEFAULT_PERIOD][2]


def period_options() -> List[Dict[str, str]]:
    """Selectable shortcuts in display order."""
    return [{"value": key, "label": label} for key, (_, _, label) in PERIOD_SHORTCUTS.items()]


def trend_granularity(period: Optional[str]) -> str:
    """Bucket size for revenue trend charts."""
    return TREND_GRANULARITY.get(period or DEFAULT_PERIOD, "week")
