"""
Table loaders for quality checks.

Reads reporting tables into typed polars DataFrames and runs the
pre-built validators over them.
"""

from typing import Any, Dict, List

import polars as pl
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.metrics import to_optional_float
from reporting.database.models import Order, OrderLineItem, Product
from reporting.quality.validators import (
    ValidationResult,
    create_line_items_validator,
    create_orders_validator,
    create_products_validator,
)

logger = structlog.get_logger(__name__)

ORDER_SCHEMA = {
    "id": pl.Utf8,
    "order_number": pl.Utf8,
    "order_date": pl.Date,
    "customer_id": pl.Utf8,
    "total_amount": pl.Float64,
    "status": pl.Utf8,
    "payment_status": pl.Utf8,
}

LINE_ITEM_SCHEMA = {
    "id": pl.Utf8,
    "order_id": pl.Utf8,
    "product_code": pl.Utf8,
    "quantity": pl.Float64,
    "unit_price": pl.Float64,
    "line_amount": pl.Float64,
}

PRODUCT_SCHEMA = {
    "id": pl.Utf8,
    "product_code": pl.Utf8,
    "cost": pl.Float64,
    "list_price": pl.Float64,
}


def _frame(records: List[Dict[str, Any]], schema: Dict[str, Any]) -> pl.DataFrame:
    columns = {name: [record[name] for record in records] for name in schema}
    return pl.DataFrame(columns, schema=schema)


def _id(value: Any):
    return None if value is None else str(value)


async def load_orders(session: AsyncSession) -> pl.DataFrame:
    result = await session.execute(
        select(
            Order.id,
            Order.order_number,
            Order.order_date,
            Order.customer_id,
            Order.total_amount,
            Order.status,
            Order.payment_status,
        )
    )
    records = [
        {
            "id": _id(row.id),
            "order_number": row.order_number,
            "order_date": row.order_date,
            "customer_id": _id(row.customer_id),
            "total_amount": to_optional_float(row.total_amount),
            "status": row.status,
            "payment_status": row.payment_status,
        }
        for row in result.all()
    ]
    return _frame(records, ORDER_SCHEMA)


async def load_line_items(session: AsyncSession) -> pl.DataFrame:
    result = await session.execute(
        select(
            OrderLineItem.id,
            OrderLineItem.order_id,
            OrderLineItem.product_code,
            OrderLineItem.quantity,
            OrderLineItem.unit_price,
            OrderLineItem.line_amount,
        )
    )
    records = [
        {
            "id": _id(row.id),
            "order_id": _id(row.order_id),
            "product_code": row.product_code,
            "quantity": to_optional_float(row.quantity),
            "unit_price": to_optional_float(row.unit_price),
            "line_amount": to_optional_float(row.line_amount),
        }
        for row in result.all()
    ]
    return _frame(records, LINE_ITEM_SCHEMA)


async def load_products(session: AsyncSession) -> pl.DataFrame:
    result = await session.execute(
        select(Product.id, Product.product_code, Product.cost, Product.list_price)
    )
    records = [
        {
            "id": _id(row.id),
            "product_code": row.product_code,
            "cost": to_optional_float(row.cost),
            "list_price": to_optional_float(row.list_price),
        }
        for row in result.all()
    ]
    return _frame(records, PRODUCT_SCHEMA)


@report("orders_quality")
async def validate_orders(session: AsyncSession) -> ValidationResult:
    return create_orders_validator().validate(await load_orders(session), dataset="orders")


@report("line_items_quality")
async def validate_line_items(session: AsyncSession) -> ValidationResult:
    """Line-item checks, including orphan lines against the orders table."""
    orders = await load_orders(session)
    line_items = await load_line_items(session)
    return create_line_items_validator(orders).validate(line_items, dataset="line_items")


@report("products_quality")
async def validate_products(session: AsyncSession) -> ValidationResult:
    return create_products_validator().validate(await load_products(session), dataset="products")
