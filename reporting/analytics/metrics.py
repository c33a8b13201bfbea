"""
Metric Calculations

Pure functions turning aggregate rows into derived metrics. No I/O.

Sentinel rules:
- percentage change from 0 is 0 (flat), 100 (new) or -100 (new, negative)
- average order value with no orders is 0
- margin with unknown pricing is None ("N/A"), never 0
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple, Union

Number = Union[int, float, Decimal]

FLOAT_TOLERANCE = 1e-9


def to_float(value: Optional[Number]) -> float:
    """Coerce an aggregate value to float; None and NaN become 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def to_optional_float(value: Optional[Number]) -> Optional[float]:
    """Coerce to float, keeping None (and NaN) as unknown."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


# =============================================================================
# GROWTH
# =============================================================================

def percentage_change(current: Optional[Number], previous: Optional[Number]) -> float:
    """
    (current - previous) / previous * 100.

    previous == 0 yields 0 when current is 0, 100 when current grew from
    nothing and -100 when it went negative from nothing.
    """
    current_value = to_float(current)
    previous_value = to_float(previous)

    if previous_value == 0:
        if current_value > 0:
            return 100.0
        if current_value < 0:
            return -100.0
        return 0.0

    change = (current_value - previous_value) / previous_value * 100
    if not math.isfinite(change):
        return 0.0
    return change


@dataclass
class MetricTriple:
    """A metric for the current window, the comparison window and the change."""
    current: float
    previous: Optional[float] = None
    change: Optional[float] = None


def metric_triple(current: Optional[Number], previous: Optional[Number], has_comparison: bool = True) -> MetricTriple:
    """Build a MetricTriple; without a comparison window only current is set."""
    if not has_comparison:
        return MetricTriple(current=to_float(current))
    return MetricTriple(
        current=to_float(current),
        previous=to_float(previous),
        change=percentage_change(current, previous),
    )


def average_order_value(revenue: Optional[Number], order_count: Optional[int]) -> float:
    """Revenue per order, 0 when there are no orders."""
    count = int(order_count or 0)
    if count <= 0:
        return 0.0
    return to_float(revenue) / count


# =============================================================================
# MARGIN
# =============================================================================

def margin_percentage(list_price: Optional[Number], cost: Optional[Number]) -> Optional[float]:
    """
    (list_price - cost) / list_price * 100.

    None when list price is unknown or zero, or cost is unknown.
    """
    price = to_optional_float(list_price)
    unit_cost = to_optional_float(cost)
    if price is None or unit_cost is None or price == 0:
        return None
    return (price - unit_cost) / price * 100


def margin_amount(list_price: Optional[Number], cost: Optional[Number]) -> Optional[float]:
    price = to_optional_float(list_price)
    unit_cost = to_optional_float(cost)
    if price is None or unit_cost is None:
        return None
    return price - unit_cost


# =============================================================================
# CONCENTRATION
# =============================================================================

@dataclass
class Concentration:
    """How many top customers it takes to reach a share of revenue"""
    customers_to_50_percent: int
    customers_to_80_percent: int
    total_customers: int
    total_revenue: float


def customers_to_share(spends: Sequence[float], share: float) -> int:
    """
    Number of top spenders whose cumulative spend first reaches share
    percent of the total. The customer crossing the threshold is counted.
    """
    values = sorted((to_float(s) for s in spends), reverse=True)
    total = sum(values)
    if total <= 0:
        return 0

    target = total * share / 100
    tolerance = abs(total) * FLOAT_TOLERANCE
    cumulative = 0.0
    for index, value in enumerate(values, start=1):
        cumulative += value
        if cumulative >= target - tolerance:
            return index
    return len(values)


def customer_concentration(spends: Iterable[Optional[Number]]) -> Concentration:
    """Concentration of period revenue across customers."""
    values = [to_float(s) for s in spends]
    return Concentration(
        customers_to_50_percent=customers_to_share(values, 50),
        customers_to_80_percent=customers_to_share(values, 80),
        total_customers=len(values),
        total_revenue=sum(values),
    )


# =============================================================================
# DISTRIBUTIONS
# =============================================================================

@dataclass(frozen=True)
class BucketSpec:
    """Half-open range [low, high)"""
    label: str
    low: float
    high: float


@dataclass
class DistributionBucket:
    label: str
    low: float
    high: float
    count: int = 0
    percentage: float = 0.0


@dataclass
class Distribution:
    """Histogram over known values; unknown values are counted separately."""
    buckets: List[DistributionBucket] = field(default_factory=list)
    total_count: int = 0
    unknown_count: int = 0


PRICE_BUCKETS: Tuple[BucketSpec, ...] = (
    BucketSpec("Under $10", -math.inf, 10),
    BucketSpec("$10-$25", 10, 25),
    BucketSpec("$25-$50", 25, 50),
    BucketSpec("$50-$100", 50, 100),
    BucketSpec("$100-$250", 100, 250),
    BucketSpec("$250+", 250, math.inf),
)

MARGIN_BUCKETS: Tuple[BucketSpec, ...] = (
    BucketSpec("Negative", -math.inf, 0),
    BucketSpec("0-20%", 0, 20),
    BucketSpec("20-40%", 20, 40),
    BucketSpec("40-60%", 40, 60),
    BucketSpec("60-80%", 60, 80),
    BucketSpec("80%+", 80, math.inf),
)


def buckets_from_edges(edges: Sequence[float], label_format: str = "{low:g}-{high:g}") -> Tuple[BucketSpec, ...]:
    """Consecutive buckets between sorted edges, e.g. [0, 10, 20] -> [0,10), [10,20]."""
    ordered = sorted(edges)
    return tuple(
        BucketSpec(label_format.format(low=low, high=high), low, high)
        for low, high in zip(ordered, ordered[1:])
    )


def _bucket_index(value: float, specs: Sequence[BucketSpec]) -> int:
    if value < specs[0].low:
        return 0
    for index, spec in enumerate(specs):
        if spec.low <= value < spec.high:
            return index
    # At or beyond the last upper bound
    return len(specs) - 1


def bucketize(values: Iterable[Optional[Number]], specs: Sequence[BucketSpec]) -> Distribution:
    """
    Assign every known value to exactly one bucket.

    Buckets are [low, high). Values below the first bucket go to the first,
    values at or above the last upper bound go to the last. None and NaN are
    reported as unknown_count and excluded from total_count, so bucket counts
    always sum to total_count.
    """
    buckets = [DistributionBucket(label=s.label, low=s.low, high=s.high) for s in specs]
    distribution = Distribution(buckets=buckets)
    if not buckets:
        return distribution

    for raw in values:
        value = to_optional_float(raw)
        if value is None:
            distribution.unknown_count += 1
            continue
        buckets[_bucket_index(value, specs)].count += 1
        distribution.total_count += 1

    for bucket in buckets:
        if distribution.total_count:
            bucket.percentage = bucket.count / distribution.total_count * 100

    return distribution


# =============================================================================
# REORDER PLANNING
# =============================================================================

STATUS_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (30, "CRITICAL"),
    (60, "LOW"),
    (90, "MODERATE"),
)
SUFFICIENT = "SUFFICIENT"
NEEDS_REORDER = ("CRITICAL", "LOW")


def forecast_daily_demand(units_sold: Optional[Number], window_days: int) -> float:
    """Average units sold per day over the trailing window."""
    if window_days <= 0:
        return 0.0
    return max(to_float(units_sold), 0.0) / window_days


def days_of_supply(available: Optional[Number], daily_demand: Optional[Number]) -> Optional[float]:
    """Days until available stock runs out; None when there is no demand."""
    demand = to_float(daily_demand)
    if demand <= 0:
        return None
    return max(to_float(available), 0.0) / demand


def inventory_status(days_remaining: Optional[float]) -> str:
    """CRITICAL < 30 days, LOW < 60, MODERATE < 90, otherwise SUFFICIENT."""
    if days_remaining is None:
        return SUFFICIENT
    for limit, status in STATUS_THRESHOLDS:
        if days_remaining < limit:
            return status
    return SUFFICIENT


def reorder_quantity(target_days: int, projected: Optional[Number], daily_demand: Optional[Number]) -> int:
    """Units to order so projected stock covers target_days of demand."""
    needed = target_days * to_float(daily_demand) - to_float(projected)
    if needed <= 0:
        return 0
    return int(math.ceil(needed - FLOAT_TOLERANCE))
