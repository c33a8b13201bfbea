"""
Customers API Endpoints

Customer listing and revenue concentration.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.filters import TypedFilters
from reporting.analytics.periods import resolve_period
from reporting.config.settings import Settings
from reporting.database.connection import get_session
from reporting.reports.customers import (
    customer_concentration_report,
    customer_listing_options,
    list_customers,
)
from reporting.serving.api.dependencies import get_app_settings, listing_filters, requested_period
from reporting.serving.api.schemas import CamelModel, PageResponse, WindowModel, page_response

router = APIRouter()


class CustomerRow(CamelModel):
    """Customer listing row; spend is null for customers without orders"""
    id: UUID
    name: str
    status: Optional[str] = None
    company_id: Optional[UUID] = None
    company_name: Optional[str] = None
    company_domain: Optional[str] = None
    total_spent: Optional[float] = None
    order_count: int
    last_order_date: Optional[date] = None
    primary_email: Optional[str] = None
    primary_phone: Optional[str] = None


class ConcentrationResponse(CamelModel):
    """Top customers needed to reach 50% and 80% of period revenue"""
    window: WindowModel
    customers_to_50_percent: int
    customers_to_80_percent: int
    total_customers: int
    total_revenue: float


@router.get("", response_model=PageResponse[CustomerRow])
async def list_customers_endpoint(
    filters: TypedFilters = Depends(listing_filters(customer_listing_options)),
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> PageResponse[CustomerRow]:
    """List customers with total spent, order count and last order date."""
    page = await list_customers(session, filters, consumer_domains=settings.reporting.consumer_domains)
    return page_response(page, CustomerRow)


@router.get("/concentration", response_model=ConcentrationResponse)
async def get_customer_concentration(
    period: Optional[str] = Depends(requested_period()),
    session: AsyncSession = Depends(get_session),
) -> ConcentrationResponse:
    """Revenue concentration across customers for the period."""
    window = resolve_period(period)
    concentration = await customer_concentration_report(session, window)
    return ConcentrationResponse(
        window=WindowModel.from_window(window),
        customers_to_50_percent=concentration.customers_to_50_percent,
        customers_to_80_percent=concentration.customers_to_80_percent,
        total_customers=concentration.total_customers,
        total_revenue=concentration.total_revenue,
    )
