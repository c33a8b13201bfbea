"""
Product Reports

Product listing with pricing, margin and period sales, plus price and
margin distributions across the catalog.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog
from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import ASC, DESC, ListingOptions, TypedFilters
from reporting.analytics.formatting import PLACEHOLDER, format_currency, format_percentage
from reporting.analytics.metrics import (
    MARGIN_BUCKETS,
    PRICE_BUCKETS,
    BucketSpec,
    Distribution,
    bucketize,
    margin_amount,
    margin_percentage,
    to_float,
    to_optional_float,
)
from reporting.analytics.query import ListingSpec, Page, amount_bounds, date_within, fetch_page
from reporting.config.settings import Settings, get_settings
from reporting.database.models import Order, OrderLineItem, Product
from reporting.reports.common import listing_options, window_for

logger = structlog.get_logger(__name__)

PRODUCT_SORT_COLUMNS = {
    "productCode": ASC,
    "name": ASC,
    "family": ASC,
    "materialType": ASC,
    "cost": DESC,
    "listPrice": DESC,
    "marginPercentage": DESC,
    "periodRevenue": DESC,
    "periodUnits": DESC,
}

# NULL when pricing is incomplete, so unknown margins sort last
MARGIN_EXPRESSION = case(
    (
        and_(
            Product.list_price.is_not(None),
            Product.list_price != 0,
            Product.cost.is_not(None),
        ),
        (Product.list_price - Product.cost) * 100.0 / Product.list_price,
    ),
    else_=None,
)


def product_listing_options(settings: Optional[Settings] = None) -> ListingOptions:
    settings = settings or get_settings()
    return listing_options(
        PRODUCT_SORT_COLUMNS,
        default_sort="productCode",
        default_page_size=settings.reporting.large_page_size,
        categories=("family", "materialType"),
        default_period=settings.reporting.default_period,
        settings=settings,
    )


def _product_columns():
    return select(
        Product.id.label("id"),
        Product.product_code.label("product_code"),
        Product.name.label("name"),
        Product.description.label("description"),
        Product.family.label("family"),
        Product.material_type.label("material_type"),
        Product.units_per_package.label("units_per_package"),
        Product.cost.label("cost"),
        Product.list_price.label("list_price"),
    ).select_from(Product)


def product_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Pricing fields of a product, with margin left unknown when pricing is incomplete."""
    margin = margin_percentage(row["list_price"], row["cost"])
    return {
        "id": row["id"],
        "product_code": row["product_code"],
        "name": row["name"],
        "description": row["description"],
        "family": row["family"],
        "material_type": row["material_type"],
        "units_per_package": row["units_per_package"],
        "cost": to_optional_float(row["cost"]),
        "list_price": to_optional_float(row["list_price"]),
        "margin_percentage": margin,
        "margin_amount": margin_amount(row["list_price"], row["cost"]),
        "margin_display": format_percentage(margin),
        "list_price_display": format_currency(row["list_price"]) if row["list_price"] is not None else PLACEHOLDER,
    }


def _category_conditions(filters: TypedFilters) -> List[Any]:
    conditions = []
    if filters.category("family"):
        conditions.append(Product.family == filters.category("family"))
    if filters.category("materialType"):
        conditions.append(Product.material_type == filters.category("materialType"))
    return conditions


@report("products")
async def list_products(
    session: AsyncSession,
    filters: TypedFilters,
    now: Optional[datetime] = None,
) -> Page:
    """
    List products with pricing and sales for the filter period.

    Search covers product code, name and description. minAmount/maxAmount
    bound the list price.
    """
    sales_stmt = (
        select(
            OrderLineItem.product_code.label("product_code"),
            func.sum(OrderLineItem.line_amount).label("period_revenue"),
            func.sum(OrderLineItem.quantity).label("period_units"),
        )
        .join(Order, OrderLineItem.order_id == Order.id)
        .group_by(OrderLineItem.product_code)
    )
    window = window_for(filters, now)
    if window is not None:
        sales_stmt = sales_stmt.where(date_within(Order.order_date, window.start, window.end))
    sales = sales_stmt.subquery()

    period_revenue = func.coalesce(sales.c.period_revenue, 0)
    period_units = func.coalesce(sales.c.period_units, 0)

    stmt = (
        _product_columns()
        .add_columns(
            period_revenue.label("period_revenue"),
            period_units.label("period_units"),
        )
        .outerjoin(sales, sales.c.product_code == Product.product_code)
    )

    conditions = _category_conditions(filters) + amount_bounds(Product.list_price, filters)
    if conditions:
        stmt = stmt.where(*conditions)

    spec = ListingSpec(
        sort_expressions={
            "productCode": Product.product_code,
            "name": Product.name,
            "family": Product.family,
            "materialType": Product.material_type,
            "cost": Product.cost,
            "listPrice": Product.list_price,
            "marginPercentage": MARGIN_EXPRESSION,
            "periodRevenue": period_revenue,
            "periodUnits": period_units,
        },
        tie_breaker=Product.id,
        search_columns=(Product.product_code, Product.name, Product.description),
    )

    page = await fetch_page(session, stmt, filters, spec)
    rows = []
    for raw in page.rows:
        row = product_row(raw)
        row["period_revenue"] = to_float(raw["period_revenue"])
        row["period_units"] = to_float(raw["period_units"])
        rows.append(row)
    page.rows = rows

    logger.info("Products page fetched", page=filters.page, rows=len(rows), total=page.total_count)
    return page


@report("product_detail")
async def get_product(session: AsyncSession, product_code: str) -> Optional[Dict[str, Any]]:
    stmt = _product_columns().where(Product.product_code == product_code)
    row = (await session.execute(stmt)).mappings().first()
    if row is None:
        return None
    return product_row(row)


async def _pricing_rows(session: AsyncSession, conditions: Sequence[Any]):
    stmt = select(Product.list_price, Product.cost)
    if conditions:
        stmt = stmt.where(*conditions)
    return (await session.execute(stmt)).all()


@report("price_distribution")
async def price_distribution(
    session: AsyncSession,
    filters: Optional[TypedFilters] = None,
    buckets: Sequence[BucketSpec] = PRICE_BUCKETS,
) -> Distribution:
    """Products per list-price range; products without a price are unknown."""
    conditions = _category_conditions(filters) if filters else []
    rows = await _pricing_rows(session, conditions)
    return bucketize((row.list_price for row in rows), buckets)


@report("margin_distribution")
async def margin_distribution(
    session: AsyncSession,
    filters: Optional[TypedFilters] = None,
    buckets: Sequence[BucketSpec] = MARGIN_BUCKETS,
) -> Distribution:
    """Products per margin range; incomplete pricing is unknown, not 0%."""
    conditions = _category_conditions(filters) if filters else []
    rows = await _pricing_rows(session, conditions)
    return bucketize((margin_percentage(row.list_price, row.cost) for row in rows), buckets)
