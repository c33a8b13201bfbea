"""
Dashboard Reports

Headline metric cards with period-over-period change, revenue trend,
recent orders and order status mix.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import DESC, TypedFilters
from reporting.analytics.metrics import (
    MetricTriple,
    average_order_value,
    metric_triple,
    to_float,
)
from reporting.analytics.periods import DateWindow, resolve_period, trend_granularity
from reporting.analytics.query import date_within, period_totals
from reporting.database.models import Order, PaymentStatus
from reporting.reports.orders import list_orders

logger = structlog.get_logger(__name__)


@dataclass
class DashboardMetrics:
    """Metric cards for one window"""
    window: DateWindow
    revenue: MetricTriple
    orders: MetricTriple
    average_order_value: MetricTriple
    customers: MetricTriple
    sales_365_days: MetricTriple


@dataclass
class TrendPoint:
    period_start: date
    revenue: float
    order_count: int


@report("dashboard_metrics")
async def dashboard_metrics(
    session: AsyncSession,
    period: Optional[str],
    now: Optional[datetime] = None,
) -> DashboardMetrics:
    """
    Revenue, orders, average order value and distinct customers for the
    period against its comparison window, plus trailing-year paid sales
    against the year before. Without a comparison window (all time) only
    current values are filled.
    """
    window = resolve_period(period, now=now)
    current, previous = await period_totals(session, window)
    has_comparison = previous is not None

    year = resolve_period("1y", now=now)
    paid = [Order.payment_status == PaymentStatus.PAID.value]
    year_current, year_previous = await period_totals(session, year, paid)

    metrics = DashboardMetrics(
        window=window,
        revenue=metric_triple(current.revenue, previous.revenue if previous else None, has_comparison),
        orders=metric_triple(current.order_count, previous.order_count if previous else None, has_comparison),
        average_order_value=metric_triple(
            average_order_value(current.revenue, current.order_count),
            average_order_value(previous.revenue, previous.order_count) if previous else None,
            has_comparison,
        ),
        customers=metric_triple(current.customer_count, previous.customer_count if previous else None, has_comparison),
        sales_365_days=metric_triple(year_current.revenue, year_previous.revenue),
    )

    logger.info(
        "Dashboard metrics computed",
        period=period,
        revenue=metrics.revenue.current,
        orders=metrics.orders.current,
    )
    return metrics


def bucket_start(value: date, granularity: str) -> date:
    """First day of the day/week/month/quarter containing value (weeks start Monday)."""
    if granularity == "day":
        return value
    if granularity == "week":
        return value - timedelta(days=value.weekday())
    if granularity == "month":
        return value.replace(day=1)
    if granularity == "quarter":
        return value.replace(month=(value.month - 1) // 3 * 3 + 1, day=1)
    raise ValueError(f"Unknown granularity: {granularity}")


@report("revenue_trend")
async def revenue_trend(
    session: AsyncSession,
    period: Optional[str],
    now: Optional[datetime] = None,
) -> List[TrendPoint]:
    """Order revenue and count per trend bucket, oldest first. Empty buckets are omitted."""
    window = resolve_period(period, now=now)
    granularity = trend_granularity(period)

    stmt = (
        select(
            Order.order_date,
            func.sum(Order.total_amount).label("revenue"),
            func.count(Order.id).label("order_count"),
        )
        .where(date_within(Order.order_date, window.start, window.end))
        .group_by(Order.order_date)
        .order_by(Order.order_date)
    )
    result = await session.execute(stmt)

    buckets: "OrderedDict[date, TrendPoint]" = OrderedDict()
    for row in result.all():
        key = bucket_start(row.order_date, granularity)
        point = buckets.setdefault(key, TrendPoint(period_start=key, revenue=0.0, order_count=0))
        point.revenue += to_float(row.revenue)
        point.order_count += int(row.order_count or 0)

    return list(buckets.values())


async def recent_orders(session: AsyncSession, limit: int = 10) -> List[Dict[str, Any]]:
    """Latest orders by order date."""
    filters = TypedFilters(page=1, page_size=limit, sort_column="orderDate", sort_direction=DESC)
    page = await list_orders(session, filters)
    return page.rows


@report("order_status_breakdown")
async def order_status_breakdown(
    session: AsyncSession,
    period: Optional[str] = "30d",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Order count and amount per status, most frequent first."""
    window = resolve_period(period, now=now)
    order_count = func.count(Order.id)
    stmt = (
        select(
            Order.status,
            order_count.label("order_count"),
            func.sum(Order.total_amount).label("total_amount"),
        )
        .where(date_within(Order.order_date, window.start, window.end))
        .group_by(Order.status)
        .order_by(order_count.desc(), Order.status)
    )
    result = await session.execute(stmt)
    return [
        {
            "status": row.status,
            "count": int(row.order_count),
            "total_amount": to_float(row.total_amount),
        }
        for row in result.all()
    ]
