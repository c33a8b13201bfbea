"""
Analytics Module

Period resolution, filter normalization, query building, metric
calculation and display formatting shared by every report.
"""
from .errors import (
    AggregationUnavailableError,
    PricingUpdateError,
    ProductNotFoundError,
    ReportingError,
)
from .filters import ListingOptions, TypedFilters, normalize_filters
from .periods import DateWindow, resolve_period

__all__ = [
    "AggregationUnavailableError",
    "PricingUpdateError",
    "ProductNotFoundError",
    "ReportingError",
    "ListingOptions",
    "TypedFilters",
    "normalize_filters",
    "DateWindow",
    "resolve_period",
]
