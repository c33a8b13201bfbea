"""
Order Reports

Paginated order listing plus single-order detail with line items.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import ASC, DESC, ListingOptions, TypedFilters
from reporting.analytics.metrics import margin_amount, margin_percentage, to_float, to_optional_float
from reporting.analytics.query import (
    ListingSpec,
    Page,
    amount_bounds,
    date_within,
    exclude_consumer_customers,
    fetch_page,
)
from reporting.config.settings import Settings, get_settings
from reporting.database.models import (
    Company,
    Customer,
    Order,
    OrderLineItem,
    PaymentStatus,
    Product,
)
from reporting.reports.common import consumer_domains_or_default, listing_options, window_for

logger = structlog.get_logger(__name__)

ORDER_SORT_COLUMNS = {
    "orderNumber": ASC,
    "orderDate": DESC,
    "totalAmount": DESC,
    "customer": ASC,
    "status": ASC,
}

ORDER_LISTING = ListingSpec(
    sort_expressions={
        "orderNumber": Order.order_number,
        "orderDate": Order.order_date,
        "totalAmount": Order.total_amount,
        "customer": Customer.name,
        "status": Order.status,
    },
    tie_breaker=Order.id,
    search_columns=(Order.order_number, Customer.name, Company.name),
)


def order_listing_options(settings: Optional[Settings] = None) -> ListingOptions:
    settings = settings or get_settings()
    return listing_options(
        ORDER_SORT_COLUMNS,
        default_sort="orderDate",
        default_page_size=settings.reporting.order_page_size,
        flags=("isPaid", "filterConsumer"),
        categories=("status", "salesChannel"),
        settings=settings,
    )


def _order_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "order_number": row["order_number"],
        "order_date": row["order_date"],
        "total_amount": to_float(row["total_amount"]),
        "status": row["status"],
        "payment_status": row["payment_status"],
        "is_paid": row["payment_status"] == PaymentStatus.PAID.value,
        "sales_channel": row["sales_channel"],
        "customer_id": row["customer_id"],
        "customer_name": row["customer_name"],
        "company_name": row["company_name"],
        "company_domain": row["company_domain"],
        "is_individual_customer": row["company_domain"] is None,
    }


def _order_columns():
    return (
        select(
            Order.id.label("id"),
            Order.order_number.label("order_number"),
            Order.order_date.label("order_date"),
            Order.total_amount.label("total_amount"),
            Order.status.label("status"),
            Order.payment_status.label("payment_status"),
            Order.sales_channel.label("sales_channel"),
            Customer.id.label("customer_id"),
            Customer.name.label("customer_name"),
            Company.name.label("company_name"),
            Company.domain.label("company_domain"),
        )
        .select_from(Order)
        .join(Customer, Order.customer_id == Customer.id)
        .outerjoin(Company, Customer.company_id == Company.id)
    )


@report("orders")
async def list_orders(
    session: AsyncSession,
    filters: TypedFilters,
    consumer_domains: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> Page:
    """
    List orders.

    Search covers order number, customer name and company name. Filters:
    period on order date, min/max total amount, isPaid, status, salesChannel
    and the consumer-domain exclusion.
    """
    stmt = _order_columns()

    conditions = amount_bounds(Order.total_amount, filters)
    window = window_for(filters, now)
    if window is not None:
        conditions.append(date_within(Order.order_date, window.start, window.end))

    is_paid = filters.flag("isPaid")
    if is_paid is True:
        conditions.append(Order.payment_status == PaymentStatus.PAID.value)
    elif is_paid is False:
        conditions.append(Order.payment_status != PaymentStatus.PAID.value)

    if filters.category("status"):
        conditions.append(Order.status == filters.category("status"))
    if filters.category("salesChannel"):
        conditions.append(Order.sales_channel == filters.category("salesChannel"))

    if filters.flag("filterConsumer"):
        conditions.append(
            exclude_consumer_customers(Order.customer_id, consumer_domains_or_default(consumer_domains))
        )

    if conditions:
        stmt = stmt.where(*conditions)

    page = await fetch_page(session, stmt, filters, ORDER_LISTING)
    page.rows = [_order_row(row) for row in page.rows]

    logger.info("Orders page fetched", page=filters.page, rows=len(page.rows), total=page.total_count)
    return page


@report("order_detail")
async def get_order(session: AsyncSession, order_number: str) -> Optional[Dict[str, Any]]:
    """Order header by order number, or None."""
    stmt = _order_columns().where(Order.order_number == order_number).limit(1)
    row = (await session.execute(stmt)).mappings().first()
    if row is None:
        return None
    return _order_row(dict(row))


@report("order_line_items")
async def get_order_line_items(session: AsyncSession, order_number: str) -> List[Dict[str, Any]]:
    """Line items of an order with product classification and list-price margin."""
    stmt = (
        select(
            OrderLineItem.id,
            OrderLineItem.product_code,
            OrderLineItem.description,
            OrderLineItem.quantity,
            OrderLineItem.unit_price,
            OrderLineItem.line_amount,
            Product.family,
            Product.material_type,
            Product.cost,
            Product.list_price,
        )
        .join(Order, OrderLineItem.order_id == Order.id)
        .outerjoin(Product, Product.product_code == OrderLineItem.product_code)
        .where(Order.order_number == order_number)
        .order_by(OrderLineItem.product_code, OrderLineItem.id)
    )
    result = await session.execute(stmt)

    return [
        {
            "id": row.id,
            "product_code": row.product_code,
            "description": row.description or "",
            "quantity": to_float(row.quantity),
            "unit_price": to_float(row.unit_price),
            "line_amount": to_float(row.line_amount),
            "family": row.family,
            "material_type": row.material_type,
            "cost": to_optional_float(row.cost),
            "list_price": to_optional_float(row.list_price),
            "margin_percentage": margin_percentage(row.list_price, row.cost),
            "margin_amount": margin_amount(row.list_price, row.cost),
        }
        for row in result.all()
    ]
