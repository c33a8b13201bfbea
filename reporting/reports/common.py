"""
Shared helpers for report modules.
"""

from datetime import datetime
from typing import Mapping, Optional, Sequence

from reporting.analytics.filters import ListingOptions, TypedFilters
from reporting.analytics.periods import DateWindow, resolve_period
from reporting.config.settings import Settings, get_settings


def listing_options(
    sort_columns: Mapping[str, str],
    default_sort: str,
    default_page_size: int,
    flags: Sequence[str] = (),
    flag_defaults: Optional[Mapping[str, bool]] = None,
    categories: Sequence[str] = (),
    default_period: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ListingOptions:
    """ListingOptions bounded by the configured maximum page size."""
    settings = settings or get_settings()
    return ListingOptions(
        sort_columns=dict(sort_columns),
        default_sort=default_sort,
        default_page_size=default_page_size,
        max_page_size=settings.reporting.max_page_size,
        flags=tuple(flags),
        flag_defaults=dict(flag_defaults or {}),
        categories=tuple(categories),
        default_period=default_period,
    )


def consumer_domains_or_default(domains: Optional[Sequence[str]]) -> Sequence[str]:
    """Caller-supplied consumer domains, else the configured list."""
    if domains is not None:
        return domains
    return get_settings().reporting.consumer_domains


def window_for(filters: TypedFilters, now: Optional[datetime] = None) -> Optional[DateWindow]:
    """Resolved window when the filters carry a period, else None."""
    if not filters.period:
        return None
    return resolve_period(filters.period, now=now)
