"""
Customer Reports

Customer listing with spend statistics and revenue concentration.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import structlog
from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import ASC, DESC, ListingOptions, TypedFilters
from reporting.analytics.metrics import Concentration, customer_concentration, to_float, to_optional_float
from reporting.analytics.periods import DateWindow
from reporting.analytics.query import (
    ListingSpec,
    Page,
    amount_bounds,
    date_within,
    fetch_page,
    non_consumer_domain,
)
from reporting.config.settings import Settings, get_settings
from reporting.database.models import Company, Customer, CustomerEmail, CustomerPhone, Order
from reporting.reports.common import consumer_domains_or_default, listing_options, window_for

logger = structlog.get_logger(__name__)

CUSTOMER_SORT_COLUMNS = {
    "name": ASC,
    "companyName": ASC,
    "totalSpent": DESC,
    "orderCount": DESC,
    "lastOrderDate": DESC,
}


def customer_listing_options(settings: Optional[Settings] = None) -> ListingOptions:
    settings = settings or get_settings()
    return listing_options(
        CUSTOMER_SORT_COLUMNS,
        default_sort="totalSpent",
        default_page_size=settings.reporting.small_page_size,
        flags=("filterConsumer",),
        settings=settings,
    )


def _primary_contact(column, model):
    return (
        select(model.customer_id.label("customer_id"), func.min(column).label("value"))
        .where(model.is_primary.is_(True))
        .group_by(model.customer_id)
        .subquery()
    )


def _any_email_contains(term: str):
    return exists().where(
        CustomerEmail.customer_id == Customer.id,
        CustomerEmail.email.icontains(term, autoescape=True),
    )


@report("customers")
async def list_customers(
    session: AsyncSession,
    filters: TypedFilters,
    consumer_domains: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> Page:
    """
    List customers with total spent, order count and last order date.

    Spend statistics cover the filter period when one is given, otherwise
    all orders. minAmount/maxAmount bound total spent.
    """
    stats_stmt = select(
        Order.customer_id.label("customer_id"),
        func.sum(Order.total_amount).label("total_spent"),
        func.count(Order.id).label("order_count"),
        func.max(Order.order_date).label("last_order_date"),
    ).group_by(Order.customer_id)
    window = window_for(filters, now)
    if window is not None:
        stats_stmt = stats_stmt.where(date_within(Order.order_date, window.start, window.end))
    stats = stats_stmt.subquery()

    email = _primary_contact(CustomerEmail.email, CustomerEmail)
    phone = _primary_contact(CustomerPhone.phone, CustomerPhone)
    order_count = func.coalesce(stats.c.order_count, 0)

    stmt = (
        select(
            Customer.id.label("id"),
            Customer.name.label("name"),
            Customer.status.label("status"),
            Company.id.label("company_id"),
            Company.name.label("company_name"),
            Company.domain.label("company_domain"),
            stats.c.total_spent.label("total_spent"),
            order_count.label("order_count"),
            stats.c.last_order_date.label("last_order_date"),
            email.c.value.label("primary_email"),
            phone.c.value.label("primary_phone"),
        )
        .select_from(Customer)
        .outerjoin(Company, Customer.company_id == Company.id)
        .outerjoin(stats, stats.c.customer_id == Customer.id)
        .outerjoin(email, email.c.customer_id == Customer.id)
        .outerjoin(phone, phone.c.customer_id == Customer.id)
    )

    conditions = amount_bounds(stats.c.total_spent, filters)
    if filters.flag("filterConsumer"):
        conditions.append(non_consumer_domain(Company.domain, consumer_domains_or_default(consumer_domains)))
    if conditions:
        stmt = stmt.where(*conditions)

    spec = ListingSpec(
        sort_expressions={
            "name": Customer.name,
            "companyName": Company.name,
            "totalSpent": stats.c.total_spent,
            "orderCount": order_count,
            "lastOrderDate": stats.c.last_order_date,
        },
        tie_breaker=Customer.id,
        search_columns=(Customer.name, Company.name),
        search_predicates=(_any_email_contains,),
    )

    page = await fetch_page(session, stmt, filters, spec)
    page.rows = [_customer_row(row) for row in page.rows]

    logger.info("Customers page fetched", page=filters.page, rows=len(page.rows), total=page.total_count)
    return page


def _customer_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "status": row["status"],
        "company_id": row["company_id"],
        "company_name": row["company_name"],
        "company_domain": row["company_domain"],
        "total_spent": to_optional_float(row["total_spent"]),
        "order_count": int(row["order_count"] or 0),
        "last_order_date": row["last_order_date"],
        "primary_email": row["primary_email"],
        "primary_phone": row["primary_phone"],
    }


async def customer_spend(
    session: AsyncSession,
    window: DateWindow,
    conditions: Sequence[Any] = (),
) -> Dict[Any, float]:
    """Order revenue per customer within the window."""
    stmt = (
        select(Order.customer_id, func.sum(Order.total_amount).label("spend"))
        .where(date_within(Order.order_date, window.start, window.end), *conditions)
        .group_by(Order.customer_id)
    )
    result = await session.execute(stmt)
    return {row.customer_id: to_float(row.spend) for row in result.all()}


@report("customer_concentration")
async def customer_concentration_report(
    session: AsyncSession,
    window: DateWindow,
) -> Concentration:
    """How many top customers account for 50% and 80% of period revenue."""
    spend = await customer_spend(session, window)
    concentration = customer_concentration(spend.values())
    logger.debug(
        "Customer concentration computed",
        customers=concentration.total_customers,
        to_50=concentration.customers_to_50_percent,
        to_80=concentration.customers_to_80_percent,
    )
    return concentration
