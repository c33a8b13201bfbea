"""
Companies API Endpoints
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.filters import TypedFilters
from reporting.config.settings import Settings
from reporting.database.connection import get_session
from reporting.reports.companies import company_listing_options, list_companies
from reporting.serving.api.dependencies import get_app_settings, listing_filters
from reporting.serving.api.schemas import CamelModel, PageResponse, page_response

router = APIRouter()


class CompanyRow(CamelModel):
    id: UUID
    name: str
    domain: str
    enriched: bool
    enriched_at: Optional[datetime] = None
    customer_count: int
    total_orders: int
    total_revenue: float


@router.get("", response_model=PageResponse[CompanyRow])
async def list_companies_endpoint(
    filters: TypedFilters = Depends(listing_filters(company_listing_options)),
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> PageResponse[CompanyRow]:
    """
    List companies. Consumer (free-mail) domains are excluded unless
    filterConsumer=false. The summary carries recentlyEnrichedCount.
    """
    page = await list_companies(session, filters, consumer_domains=settings.reporting.consumer_domains)
    return page_response(page, CompanyRow)
