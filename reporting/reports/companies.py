"""
Company Reports

Company listing with customer, order and revenue statistics. The
consumer-domain filter is on unless explicitly disabled.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import ASC, DESC, ListingOptions, TypedFilters
from reporting.analytics.query import (
    ListingSpec,
    Page,
    amount_bounds,
    count_rows,
    fetch_page,
    non_consumer_domain,
    search_clause,
)
from reporting.analytics.metrics import to_float
from reporting.config.settings import Settings, get_settings
from reporting.database.models import Company, Customer, Order
from reporting.reports.common import consumer_domains_or_default, listing_options

logger = structlog.get_logger(__name__)

RECENTLY_ENRICHED_DAYS = 30

COMPANY_SORT_COLUMNS = {
    "name": ASC,
    "domain": ASC,
    "customerCount": DESC,
    "totalOrders": DESC,
    "totalRevenue": DESC,
    "enrichedAt": DESC,
}


def company_listing_options(settings: Optional[Settings] = None) -> ListingOptions:
    settings = settings or get_settings()
    return listing_options(
        COMPANY_SORT_COLUMNS,
        default_sort="domain",
        default_page_size=settings.reporting.small_page_size,
        flags=("filterConsumer",),
        flag_defaults={"filterConsumer": True},
        settings=settings,
    )


@report("companies")
async def list_companies(
    session: AsyncSession,
    filters: TypedFilters,
    consumer_domains: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> Page:
    """
    List companies.

    Search covers name and domain. minAmount/maxAmount bound total revenue.
    The page summary carries recently_enriched_count: companies matching the
    same filters enriched in the last 30 days.
    """
    stats = (
        select(
            Customer.company_id.label("company_id"),
            func.count(func.distinct(Customer.id)).label("customer_count"),
            func.count(Order.id).label("total_orders"),
            func.sum(Order.total_amount).label("total_revenue"),
        )
        .select_from(Customer)
        .outerjoin(Order, Order.customer_id == Customer.id)
        .where(Customer.company_id.is_not(None))
        .group_by(Customer.company_id)
        .subquery()
    )
    customer_count = func.coalesce(stats.c.customer_count, 0)
    total_orders = func.coalesce(stats.c.total_orders, 0)
    total_revenue = func.coalesce(stats.c.total_revenue, 0)

    stmt = (
        select(
            Company.id.label("id"),
            Company.name.label("name"),
            Company.domain.label("domain"),
            Company.enriched_at.label("enriched_at"),
            customer_count.label("customer_count"),
            total_orders.label("total_orders"),
            total_revenue.label("total_revenue"),
        )
        .select_from(Company)
        .outerjoin(stats, stats.c.company_id == Company.id)
    )

    conditions = amount_bounds(total_revenue, filters)
    if filters.flag("filterConsumer"):
        conditions.append(non_consumer_domain(Company.domain, consumer_domains_or_default(consumer_domains)))
    if conditions:
        stmt = stmt.where(*conditions)

    spec = ListingSpec(
        sort_expressions={
            "name": Company.name,
            "domain": Company.domain,
            "customerCount": customer_count,
            "totalOrders": total_orders,
            "totalRevenue": total_revenue,
            "enrichedAt": Company.enriched_at,
        },
        tie_breaker=Company.id,
        search_columns=(Company.name, Company.domain),
    )

    page = await fetch_page(session, stmt, filters, spec)
    page.rows = [_company_row(row) for row in page.rows]

    cutoff = (now or datetime.now()) - timedelta(days=RECENTLY_ENRICHED_DAYS)
    recent_stmt = stmt.where(Company.enriched_at >= cutoff)
    clause = search_clause(filters.search, spec.search_columns)
    if clause is not None:
        recent_stmt = recent_stmt.where(clause)
    page.summary["recently_enriched_count"] = await count_rows(session, recent_stmt)

    logger.info("Companies page fetched", page=filters.page, rows=len(page.rows), total=page.total_count)
    return page


def _company_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"] or row["domain"],
        "domain": row["domain"],
        "enriched": row["enriched_at"] is not None,
        "enriched_at": row["enriched_at"],
        "customer_count": int(row["customer_count"] or 0),
        "total_orders": int(row["total_orders"] or 0),
        "total_revenue": to_float(row["total_revenue"]),
    }
