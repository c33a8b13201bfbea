"""
Dashboard API Endpoints

Metric cards, revenue trend, recent orders and order status mix.
"""

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.periods import (
    DEFAULT_PERIOD,
    is_valid_period,
    period_label,
    period_options,
    trend_granularity,
)
from reporting.database.connection import get_session
from reporting.reports import dashboard
from reporting.serving.api.dependencies import requested_period
from reporting.serving.api.routes.orders import OrderRow
from reporting.serving.api.schemas import CamelModel, MetricTripleModel, WindowModel

router = APIRouter()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class DashboardMetricsResponse(CamelModel):
    """Metric cards; previous and change are null for all-time"""
    period: str
    period_label: str
    window: WindowModel
    revenue: MetricTripleModel
    orders: MetricTripleModel
    average_order_value: MetricTripleModel
    customers: MetricTripleModel
    sales_365_days: MetricTripleModel


class TrendPointModel(CamelModel):
    period_start: date
    revenue: float
    order_count: int


class TrendResponse(CamelModel):
    period: str
    granularity: str
    points: List[TrendPointModel]


class StatusCountModel(CamelModel):
    status: Optional[str] = None
    count: int
    total_amount: float


class PeriodOptionModel(CamelModel):
    value: str
    label: str


# =============================================================================
# ENDPOINTS
# =============================================================================

def _effective(period: Optional[str]) -> str:
    return period if is_valid_period(period) else DEFAULT_PERIOD


@router.get("/periods", response_model=List[PeriodOptionModel])
async def get_period_options() -> List[Dict[str, str]]:
    """Selectable period shortcuts."""
    return period_options()


@router.get("/metrics", response_model=DashboardMetricsResponse)
async def get_dashboard_metrics(
    period: Optional[str] = Depends(requested_period()),
    session: AsyncSession = Depends(get_session),
) -> DashboardMetricsResponse:
    """Revenue, orders, average order value and customers against the comparison window."""
    metrics = await dashboard.dashboard_metrics(session, period)
    return DashboardMetricsResponse(
        period=_effective(period),
        period_label=period_label(_effective(period)),
        window=WindowModel.from_window(metrics.window),
        revenue=MetricTripleModel.from_triple(metrics.revenue),
        orders=MetricTripleModel.from_triple(metrics.orders),
        average_order_value=MetricTripleModel.from_triple(metrics.average_order_value),
        customers=MetricTripleModel.from_triple(metrics.customers),
        sales_365_days=MetricTripleModel.from_triple(metrics.sales_365_days),
    )


@router.get("/trend", response_model=TrendResponse)
async def get_revenue_trend(
    period: Optional[str] = Depends(requested_period()),
    session: AsyncSession = Depends(get_session),
) -> TrendResponse:
    """Revenue and order count per day, week, month or quarter depending on the period."""
    points = await dashboard.revenue_trend(session, period)
    return TrendResponse(
        period=_effective(period),
        granularity=trend_granularity(period),
        points=[TrendPointModel.model_validate(point) for point in points],
    )


@router.get("/recent-orders", response_model=List[OrderRow])
async def get_recent_orders(
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> List[OrderRow]:
    """Latest orders by order date."""
    rows = await dashboard.recent_orders(session, limit=limit)
    return [OrderRow.model_validate(row) for row in rows]


@router.get("/order-status", response_model=List[StatusCountModel])
async def get_order_status_breakdown(
    period: Optional[str] = Depends(requested_period()),
    session: AsyncSession = Depends(get_session),
) -> List[StatusCountModel]:
    """Order count and amount per status."""
    rows = await dashboard.order_status_breakdown(session, period)
    return [StatusCountModel.model_validate(row) for row in rows]
