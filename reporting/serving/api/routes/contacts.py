"""
Contacts API Endpoints
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.filters import TypedFilters
from reporting.config.settings import Settings
from reporting.database.connection import get_session
from reporting.reports.contacts import contact_listing_options, list_contacts
from reporting.serving.api.dependencies import get_app_settings, listing_filters
from reporting.serving.api.schemas import CamelModel, PageResponse, page_response

router = APIRouter()


class ContactRow(CamelModel):
    """One customer email address; marketing flags are null when unknown"""
    id: UUID
    email: str
    is_primary: bool
    email_marketable: Optional[bool] = None
    key_account_contact: Optional[bool] = None
    customer_id: UUID
    name: str
    company_name: Optional[str] = None
    company_domain: Optional[str] = None


@router.get("", response_model=PageResponse[ContactRow])
async def list_contacts_endpoint(
    filters: TypedFilters = Depends(listing_filters(contact_listing_options)),
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> PageResponse[ContactRow]:
    """List contacts; emailMarketable and keyAccountContact accept true or false."""
    page = await list_contacts(session, filters, consumer_domains=settings.reporting.consumer_domains)
    return page_response(page, ContactRow)
