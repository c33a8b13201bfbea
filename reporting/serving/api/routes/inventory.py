"""
Inventory and Reorder Planning API Endpoints
"""

from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.filters import TypedFilters
from reporting.analytics.periods import resolve_period
from reporting.config.settings import Settings
from reporting.database.connection import get_session
from reporting.reports.inventory import inventory_listing_options, inventory_trend, list_inventory
from reporting.reports.reorder import list_reorder_items, reorder_listing_options, reorder_summary
from reporting.serving.api.dependencies import get_app_settings, listing_filters, requested_period
from reporting.serving.api.schemas import CamelModel, PageResponse, page_response

router = APIRouter()
reorder_router = APIRouter()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class InventoryRow(CamelModel):
    id: UUID
    product_code: str
    name: str
    family: Optional[str] = None
    material_type: Optional[str] = None
    snapshot_date: date
    quantity_on_hand: float
    quantity_on_order: float
    quantity_committed: float
    quantity_change: float
    available: float


class InventoryTrendPoint(CamelModel):
    snapshot_date: date
    quantity_on_hand: float
    quantity_on_order: float
    quantity_committed: float


class ReorderTarget(CamelModel):
    """Units to order for one target horizon; value is null without a cost"""
    target_days: int
    quantity: int
    value: Optional[float] = None


class ReorderRow(CamelModel):
    """Reorder planning row for a product with sales in the demand window"""
    id: UUID
    product_code: str
    name: str
    family: Optional[str] = None
    snapshot_date: date
    quantity_on_hand: float
    quantity_on_order: float
    quantity_committed: float
    available: float
    projected: float
    inventory_value: Optional[float] = None
    units_sold: float
    daily_demand: float
    days_remaining: Optional[float] = None
    estimated_stockout_date: Optional[date] = None
    inventory_status: str
    needs_reorder: bool
    reorder: List[ReorderTarget]


class StockoutPoint(CamelModel):
    """Products running out on one date and their stock value at cost"""
    stockout_date: date
    product_count: int
    total_value: float
    skus: List[str]


class ReorderSummaryResponse(CamelModel):
    total_products: int
    status_counts: Dict[str, int]
    status_percentages: Dict[str, float]
    needs_reorder_count: int
    reorder_totals: List[ReorderTarget]
    avg_days_until_stockout: Optional[float] = None
    stockout_timeline: List[StockoutPoint]


def _targets(by_target: Dict[int, Dict[str, Optional[float]]]) -> List[ReorderTarget]:
    return [
        ReorderTarget(target_days=days, quantity=values["quantity"], value=values["value"])
        for days, values in sorted(by_target.items())
    ]


# =============================================================================
# INVENTORY
# =============================================================================

@router.get("", response_model=PageResponse[InventoryRow])
async def list_inventory_endpoint(
    filters: TypedFilters = Depends(listing_filters(inventory_listing_options)),
    session: AsyncSession = Depends(get_session),
) -> PageResponse[InventoryRow]:
    """Latest stock position per product."""
    return page_response(await list_inventory(session, filters), InventoryRow)


@router.get("/trend", response_model=List[InventoryTrendPoint])
async def get_inventory_trend(
    period: Optional[str] = Depends(requested_period()),
    product_code: Optional[str] = Query(None, alias="productCode"),
    session: AsyncSession = Depends(get_session),
) -> List[InventoryTrendPoint]:
    """Total quantities per snapshot date, optionally for one product."""
    points = await inventory_trend(session, resolve_period(period), product_code=product_code)
    return [InventoryTrendPoint.model_validate(point) for point in points]


# =============================================================================
# REORDER PLANNING
# =============================================================================

@reorder_router.get("", response_model=PageResponse[ReorderRow])
async def list_reorder_endpoint(
    filters: TypedFilters = Depends(listing_filters(reorder_listing_options)),
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> PageResponse[ReorderRow]:
    """
    Days of supply and reorder quantities per product, most urgent first.

    Filters: onlyNeedsReorder, inventoryStatus, family, search.
    """
    page = await list_reorder_items(session, filters, settings=settings)
    for row in page.rows:
        row["reorder"] = _targets(row["reorder"])
    return page_response(page, ReorderRow)


@reorder_router.get("/summary", response_model=ReorderSummaryResponse)
async def get_reorder_summary(
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> ReorderSummaryResponse:
    """Status counts, reorder totals per target and upcoming stockouts."""
    summary = await reorder_summary(session, settings=settings)
    summary["reorder_totals"] = _targets(summary["reorder_totals"])
    return ReorderSummaryResponse.model_validate(summary)
