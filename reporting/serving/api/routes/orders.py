"""
Orders API Endpoints

Order listing, order detail and line items.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.filters import TypedFilters
from reporting.config.settings import Settings
from reporting.database.connection import get_session
from reporting.reports.orders import get_order, get_order_line_items, list_orders, order_listing_options
from reporting.serving.api.dependencies import get_app_settings, listing_filters
from reporting.serving.api.schemas import CamelModel, PageResponse, page_response

router = APIRouter()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class OrderRow(CamelModel):
    """Order listing row"""
    id: UUID
    order_number: str
    order_date: date
    total_amount: float
    status: Optional[str] = None
    payment_status: Optional[str] = None
    is_paid: bool
    sales_channel: Optional[str] = None
    customer_id: UUID
    customer_name: str
    company_name: Optional[str] = None
    company_domain: Optional[str] = None
    is_individual_customer: bool


class LineItemRow(CamelModel):
    """Order line with list-price margin; margin is null when pricing is unknown"""
    id: UUID
    product_code: Optional[str] = None
    description: str
    quantity: float
    unit_price: float
    line_amount: float
    family: Optional[str] = None
    material_type: Optional[str] = None
    cost: Optional[float] = None
    list_price: Optional[float] = None
    margin_percentage: Optional[float] = None
    margin_amount: Optional[float] = None


class OrderDetail(CamelModel):
    order: OrderRow
    line_items: List[LineItemRow]


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=PageResponse[OrderRow])
async def list_orders_endpoint(
    filters: TypedFilters = Depends(listing_filters(order_listing_options)),
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> PageResponse[OrderRow]:
    """
    List orders with pagination and filtering.

    Query parameters: page, pageSize, search, sortColumn, sortDirection,
    period or startDate/endDate, minAmount, maxAmount, isPaid, status,
    salesChannel, filterConsumer.
    """
    page = await list_orders(session, filters, consumer_domains=settings.reporting.consumer_domains)
    return page_response(page, OrderRow)


@router.get("/{order_number}", response_model=OrderDetail)
async def get_order_endpoint(
    order_number: str,
    session: AsyncSession = Depends(get_session),
) -> OrderDetail:
    """Order header and its line items."""
    order = await get_order(session, order_number)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    line_items = await get_order_line_items(session, order_number)
    return OrderDetail(
        order=OrderRow.model_validate(order),
        line_items=[LineItemRow.model_validate(item) for item in line_items],
    )
