"""
Filter Normalization

Converts untyped query parameters into a TypedFilters value at the edge of
the pipeline. Everything downstream reads the typed value only.

Invalid input never raises. Each field falls back independently:
- page: < 1 or unparsable -> 1, beyond the largest storable offset -> clamped
- pageSize: < 1 or unparsable -> caller default, above max -> max
- sortColumn: not allowed -> caller default column
- sortDirection: not asc/desc -> the column's default direction
- flags: "true" / "false", anything else -> no filter
- minAmount / maxAmount: unparsable or non-finite -> no filter
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from reporting.analytics.periods import parse_explicit_range

RawValue = Union[str, Sequence[str], None]
RawParams = Mapping[str, RawValue]

ASC = "asc"
DESC = "desc"
SORT_DIRECTIONS = (ASC, DESC)

# Largest OFFSET a BIGINT can carry
MAX_OFFSET = 2 ** 63 - 1


@dataclass(frozen=True)
class ListingOptions:
    """
    Caller context for one listing.

    sort_columns maps each sortable column to its default direction
    (text columns usually asc, amounts and dates desc).
    """
    sort_columns: Mapping[str, str]
    default_sort: str
    default_page_size: int = 10
    max_page_size: int = 500
    flags: Tuple[str, ...] = ()
    flag_defaults: Mapping[str, bool] = field(default_factory=dict)
    categories: Tuple[str, ...] = ()
    default_period: Optional[str] = None


@dataclass(frozen=True)
class TypedFilters:
    """Normalized listing filters"""
    page: int = 1
    page_size: int = 10
    search: Optional[str] = None
    sort_column: str = ""
    sort_direction: str = ASC
    period: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    flags: Mapping[str, Optional[bool]] = field(default_factory=dict)
    categories: Mapping[str, str] = field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def descending(self) -> bool:
        return self.sort_direction == DESC

    def flag(self, name: str) -> Optional[bool]:
        """Tri-state flag value; None means the filter is not applied."""
        return self.flags.get(name)

    def category(self, name: str) -> Optional[str]:
        return self.categories.get(name)


def first_value(value: RawValue) -> Optional[str]:
    """First element of a multi-valued parameter."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return first_value(value[0]) if value else None
    return str(value)


def parse_int(value: RawValue) -> Optional[int]:
    text = first_value(value)
    if text is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        return None


def parse_float(value: RawValue) -> Optional[float]:
    text = first_value(value)
    if text is None:
        return None
    try:
        number = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_flag(value: RawValue) -> Optional[bool]:
    text = first_value(value)
    if text is None:
        return None
    text = text.strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def parse_text(value: RawValue) -> Optional[str]:
    text = first_value(value)
    if text is None:
        return None
    text = text.strip()
    return text or None


def period_param(raw: RawParams, default: Optional[str]) -> Optional[str]:
    """period, else startDate and endDate folded into an explicit range, else default."""
    period = parse_text(raw.get("period"))
    if period:
        return period
    start = parse_text(raw.get("startDate"))
    end = parse_text(raw.get("endDate"))
    if start and end:
        explicit = f"{start}..{end}"
        if parse_explicit_range(explicit) is not None:
            return explicit
    return default


def normalize_filters(raw: Optional[RawParams], options: ListingOptions) -> TypedFilters:
    """
    Normalize raw query parameters for one listing.

    Args:
        raw: Query parameters; values may be strings, lists of strings or None
        options: Allowed sort columns, defaults and recognised keys

    Returns:
        TypedFilters
    """
    raw = raw or {}

    page_size = parse_int(raw.get("pageSize"))
    if page_size is None or page_size < 1:
        page_size = options.default_page_size
    page_size = min(page_size, options.max_page_size)

    page = parse_int(raw.get("page"))
    if page is None or page < 1:
        page = 1
    page = min(page, MAX_OFFSET // page_size)

    sort_column = parse_text(raw.get("sortColumn"))
    if sort_column not in options.sort_columns:
        sort_column = options.default_sort

    sort_direction = (parse_text(raw.get("sortDirection")) or "").lower()
    if sort_direction not in SORT_DIRECTIONS:
        sort_direction = options.sort_columns.get(sort_column, ASC)

    flags: Dict[str, Optional[bool]] = {}
    for name in options.flags:
        value = parse_flag(raw.get(name))
        if value is None:
            value = options.flag_defaults.get(name)
        flags[name] = value

    categories: Dict[str, Any] = {}
    for name in options.categories:
        value = parse_text(raw.get(name))
        if value is not None:
            categories[name] = value

    return TypedFilters(
        page=page,
        page_size=page_size,
        search=parse_text(raw.get("search")),
        sort_column=sort_column,
        sort_direction=sort_direction,
        period=period_param(raw, options.default_period),
        min_amount=parse_float(raw.get("minAmount")),
        max_amount=parse_float(raw.get("maxAmount")),
        flags=flags,
        categories=categories,
    )
