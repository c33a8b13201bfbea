"""
Grouped Breakdowns

Revenue by product family, material type, sales channel and company, each
compared with the previous equal-length window.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.metrics import Concentration, customer_concentration
from reporting.analytics.periods import DateWindow
from reporting.analytics.query import (
    GroupComparison,
    date_within,
    exclude_consumer_customers,
    grouped_comparison,
    line_item_source,
)
from reporting.config.settings import get_settings
from reporting.database.models import Company, Order, OrderLineItem, Product

logger = structlog.get_logger(__name__)

# Breakdowns default to a year, other reports to 30 days
BREAKDOWN_DEFAULT_PERIOD = "1y"

GROUP_COLUMNS = {
    "family": Product.family,
    "material": Product.material_type,
    "channel": Order.sales_channel,
    "company": Company.domain,
}

# Display names for dimensions grouped by an identity column
GROUP_LABELS = {
    "company": Company.name,
}


async def breakdown(
    session: AsyncSession,
    dimension: str,
    window: DateWindow,
    group_value: Optional[str] = None,
    consumer_domains: Optional[Sequence[str]] = None,
) -> List[GroupComparison]:
    """
    Grouped comparison along one of the GROUP_COLUMNS dimensions.

    An unknown dimension or group value yields an empty list.
    """
    column = GROUP_COLUMNS.get(dimension)
    if column is None:
        logger.warning("Unknown breakdown dimension", dimension=dimension)
        return []

    conditions: List[Any] = []
    if consumer_domains:
        conditions.append(exclude_consumer_customers(Order.customer_id, consumer_domains))

    groups = await grouped_comparison(
        session,
        column,
        window,
        conditions=conditions,
        group_value=group_value,
        null_label=get_settings().reporting.unclassified_label,
        label_column=GROUP_LABELS.get(dimension),
    )
    logger.info("Breakdown computed", dimension=dimension, groups=len(groups))
    return groups


@report("family_breakdown")
async def family_breakdown(session: AsyncSession, window: DateWindow, family: Optional[str] = None) -> List[GroupComparison]:
    return await breakdown(session, "family", window, group_value=family)


@report("material_breakdown")
async def material_breakdown(session: AsyncSession, window: DateWindow, material: Optional[str] = None) -> List[GroupComparison]:
    return await breakdown(session, "material", window, group_value=material)


@report("channel_breakdown")
async def channel_breakdown(session: AsyncSession, window: DateWindow, channel: Optional[str] = None) -> List[GroupComparison]:
    return await breakdown(session, "channel", window, group_value=channel)


@report("company_breakdown")
async def company_breakdown(
    session: AsyncSession,
    window: DateWindow,
    consumer_domains: Optional[Sequence[str]] = None,
) -> List[GroupComparison]:
    """
    Revenue by company domain, labelled with the company name. Customers
    without a company share the unclassified group; consumer-domain
    customers are excluded when domains are given.
    """
    return await breakdown(session, "company", window, consumer_domains=consumer_domains)


@dataclass
class FamilyDetail:
    family: str
    comparison: Optional[GroupComparison]
    concentration: Concentration


@report("family_detail")
async def family_detail(session: AsyncSession, window: DateWindow, family: str) -> FamilyDetail:
    """One family's comparison and how concentrated its revenue is across customers."""
    groups = await breakdown(session, "family", window, group_value=family)
    unclassified = get_settings().reporting.unclassified_label

    stmt = line_item_source(
        select(Order.customer_id, func.sum(OrderLineItem.line_amount).label("spend"))
    ).where(
        date_within(Order.order_date, window.start, window.end),
        func.coalesce(Product.family, unclassified) == family,
    ).group_by(Order.customer_id)
    result = await session.execute(stmt)

    return FamilyDetail(
        family=family,
        comparison=groups[0] if groups else None,
        concentration=customer_concentration(row.spend for row in result.all()),
    )
