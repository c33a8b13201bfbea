"""
Shared API Models

Response envelopes used by several routers. Field names are snake_case in
Python and camelCase on the wire.
"""

import math
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from reporting.analytics.metrics import Distribution, MetricTriple
from reporting.analytics.periods import DateWindow
from reporting.analytics.query import GroupComparison, GroupTotals, Page


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


RowT = TypeVar("RowT", bound=BaseModel)


# =============================================================================
# LISTINGS
# =============================================================================

class PageResponse(CamelModel, Generic[RowT]):
    """One page of a listing"""
    rows: List[RowT]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    summary: Dict[str, Any] = {}


def page_response(page: Page, row_model: Type[RowT]) -> PageResponse[RowT]:
    """Wrap a report Page, validating each row dict into row_model."""
    return PageResponse[row_model](
        rows=[row_model.model_validate(row) for row in page.rows],
        total_count=page.total_count,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
        summary={to_camel(key): value for key, value in page.summary.items()},
    )


# =============================================================================
# PERIODS AND METRICS
# =============================================================================

class WindowModel(CamelModel):
    start: datetime
    end: datetime
    compare_start: Optional[datetime] = None
    compare_end: Optional[datetime] = None

    @classmethod
    def from_window(cls, window: DateWindow) -> "WindowModel":
        return cls(
            start=window.start,
            end=window.end,
            compare_start=window.compare_start,
            compare_end=window.compare_end,
        )


class MetricTripleModel(CamelModel):
    """Current value, comparison value and percentage change"""
    current: float
    previous: Optional[float] = None
    change: Optional[float] = None

    @classmethod
    def from_triple(cls, triple: MetricTriple) -> "MetricTripleModel":
        return cls(current=triple.current, previous=triple.previous, change=triple.change)


# =============================================================================
# GROUPED BREAKDOWNS
# =============================================================================

class GroupTotalsModel(CamelModel):
    revenue: float
    quantity: float
    order_count: int
    customer_count: int


class GrowthModel(CamelModel):
    """Percentage change per measure"""
    revenue: float
    quantity: float
    order_count: float
    customer_count: float


class GroupComparisonModel(CamelModel):
    """One group's totals in both windows; previous and growth are null for all-time"""
    group_key: str
    label: Optional[str] = None
    current: GroupTotalsModel
    previous: Optional[GroupTotalsModel] = None
    growth: Optional[GrowthModel] = None


def _totals(totals: Optional[GroupTotals]) -> Optional[GroupTotalsModel]:
    if totals is None:
        return None
    return GroupTotalsModel.model_validate(totals)


def group_response(groups: List[GroupComparison]) -> List[GroupComparisonModel]:
    results = []
    for group in groups:
        growth = group.growth
        results.append(
            GroupComparisonModel(
                group_key=group.group_key,
                label=group.label or group.group_key,
                current=_totals(group.current),
                previous=_totals(group.previous),
                growth=None if growth is None else GrowthModel(**growth),
            )
        )
    return results


# =============================================================================
# DISTRIBUTIONS
# =============================================================================

class BucketModel(CamelModel):
    """Histogram bucket [low, high); open ends are null"""
    label: str
    low: Optional[float] = None
    high: Optional[float] = None
    count: int
    percentage: float


class DistributionModel(CamelModel):
    buckets: List[BucketModel]
    total_count: int
    unknown_count: int


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def distribution_response(distribution: Distribution) -> DistributionModel:
    return DistributionModel(
        buckets=[
            BucketModel(
                label=bucket.label,
                low=_finite(bucket.low),
                high=_finite(bucket.high),
                count=bucket.count,
                percentage=round(bucket.percentage, 2),
            )
            for bucket in distribution.buckets
        ],
        total_count=distribution.total_count,
        unknown_count=distribution.unknown_count,
    )


class ErrorResponse(CamelModel):
    detail: str
    report: Optional[str] = None
