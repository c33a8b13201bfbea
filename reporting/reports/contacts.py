"""
Contact Reports

One row per customer email address.
"""

from typing import Any, Dict, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import ASC, ListingOptions, TypedFilters
from reporting.analytics.query import ListingSpec, Page, fetch_page, non_consumer_domain
from reporting.config.settings import Settings, get_settings
from reporting.database.models import Company, Customer, CustomerEmail
from reporting.reports.common import consumer_domains_or_default, listing_options

logger = structlog.get_logger(__name__)

CONTACT_SORT_COLUMNS = {
    "name": ASC,
    "email": ASC,
    "companyName": ASC,
}

CONTACT_LISTING = ListingSpec(
    sort_expressions={
        "name": Customer.name,
        "email": CustomerEmail.email,
        "companyName": Company.name,
    },
    tie_breaker=CustomerEmail.id,
    search_columns=(Customer.name, CustomerEmail.email, Company.name),
)


def contact_listing_options(settings: Optional[Settings] = None) -> ListingOptions:
    settings = settings or get_settings()
    return listing_options(
        CONTACT_SORT_COLUMNS,
        default_sort="name",
        default_page_size=settings.reporting.large_page_size,
        flags=("emailMarketable", "keyAccountContact", "filterConsumer"),
        settings=settings,
    )


@report("contacts")
async def list_contacts(
    session: AsyncSession,
    filters: TypedFilters,
    consumer_domains: Optional[Sequence[str]] = None,
) -> Page:
    """List customer email contacts; emailMarketable and keyAccountContact are tri-state."""
    stmt = (
        select(
            CustomerEmail.id.label("id"),
            CustomerEmail.email.label("email"),
            CustomerEmail.is_primary.label("is_primary"),
            CustomerEmail.email_marketable.label("email_marketable"),
            CustomerEmail.key_account_contact.label("key_account_contact"),
            Customer.id.label("customer_id"),
            Customer.name.label("name"),
            Company.name.label("company_name"),
            Company.domain.label("company_domain"),
        )
        .select_from(CustomerEmail)
        .join(Customer, CustomerEmail.customer_id == Customer.id)
        .outerjoin(Company, Customer.company_id == Company.id)
    )

    conditions = []
    marketable = filters.flag("emailMarketable")
    if marketable is not None:
        conditions.append(CustomerEmail.email_marketable.is_(marketable))
    key_account = filters.flag("keyAccountContact")
    if key_account is not None:
        conditions.append(CustomerEmail.key_account_contact.is_(key_account))
    if filters.flag("filterConsumer"):
        conditions.append(non_consumer_domain(Company.domain, consumer_domains_or_default(consumer_domains)))
    if conditions:
        stmt = stmt.where(*conditions)

    page = await fetch_page(session, stmt, filters, CONTACT_LISTING)
    page.rows = [_contact_row(row) for row in page.rows]

    logger.info("Contacts page fetched", page=filters.page, rows=len(page.rows), total=page.total_count)
    return page


def _contact_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "email": row["email"],
        "is_primary": bool(row["is_primary"]),
        "email_marketable": row["email_marketable"],
        "key_account_contact": row["key_account_contact"],
        "customer_id": row["customer_id"],
        "name": row["name"],
        "company_name": row["company_name"],
        "company_domain": row["company_domain"],
    }
