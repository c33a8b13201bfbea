"""
Product Pricing

The one write path of the pipeline: changing a product's cost or list price
updates the product row and appends a price history record in a single
transaction. Readers see either both changes or neither.
"""

import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import PricingUpdateError, ProductNotFoundError, report
from reporting.analytics.metrics import to_optional_float
from reporting.database.models import Product, ProductPriceHistory

logger = structlog.get_logger(__name__)


class _Unset:
    """Marker for a pricing field the caller did not supply."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

PriceInput = Union[float, Decimal, None, _Unset]

# Numeric(12, 2)
MAX_PRICE = Decimal("9999999999.99")


def _to_price(value: Union[float, Decimal, None]) -> Optional[Decimal]:
    """Round to cents; InvalidOperation for non-finite, negative or oversized prices."""
    if value is None:
        return None
    price = Decimal(str(value))
    if not price.is_finite() or price < 0 or price > MAX_PRICE:
        raise InvalidOperation(f"Price out of range: {value}")
    return price.quantize(Decimal("0.01"))


def _resolve_prices(product: Product, cost: PriceInput, list_price: PriceInput) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    new_cost = product.cost if cost is UNSET else _to_price(cost)
    new_list_price = product.list_price if list_price is UNSET else _to_price(list_price)
    return new_cost, new_list_price


async def update_product_pricing(
    session: AsyncSession,
    product_id: uuid.UUID,
    cost: PriceInput = UNSET,
    list_price: PriceInput = UNSET,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Product:
    """
    Set cost and/or list price and record the resulting pricing.

    Passing None clears a field (unknown pricing); leaving a field UNSET
    keeps its current value. The history row carries the product's pricing
    after the change, including the field that was not updated.

    Args:
        session: Database session; the transaction is committed here
        product_id: Product to update
        cost: New cost, None to clear, UNSET to keep
        list_price: New list price, None to clear, UNSET to keep
        notes: Free-text reason stored on the history row
        now: Effective date of the change (defaults to the current time)

    Returns:
        The updated product

    Raises:
        ProductNotFoundError: No product with this id
        PricingUpdateError: The transaction failed and was rolled back
    """
    effective = now or datetime.now()
    try:
        product = await session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if cost is UNSET and list_price is UNSET:
            logger.info("Pricing update without changes", product_id=str(product_id))
            return product

        # Both prices are validated before the product is touched
        product.cost, product.list_price = _resolve_prices(product, cost, list_price)
        product.updated_at = effective

        session.add(
            ProductPriceHistory(
                product_id=product.id,
                cost=product.cost,
                list_price=product.list_price,
                effective_date=effective,
                notes=notes,
            )
        )
        await session.commit()
    except (SQLAlchemyError, InvalidOperation) as e:
        await session.rollback()
        logger.error(
            "Pricing update failed, rolled back",
            product_id=str(product_id),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise PricingUpdateError(product_id, e) from e

    logger.info(
        "Product pricing updated",
        product_id=str(product_id),
        product_code=product.product_code,
        cost=to_optional_float(product.cost),
        list_price=to_optional_float(product.list_price),
    )
    return product


@report("pricing_at_date")
async def get_pricing_at_date(
    session: AsyncSession,
    product_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Pricing in force at a point in time.

    The newest history row effective on or before ``at``; without one, the
    product's current pricing with effective_date None.
    """
    at = at or datetime.now()
    stmt = (
        select(ProductPriceHistory)
        .where(
            ProductPriceHistory.product_id == product_id,
            ProductPriceHistory.effective_date <= at,
        )
        .order_by(ProductPriceHistory.effective_date.desc(), ProductPriceHistory.created_at.desc())
        .limit(1)
    )
    history = (await session.execute(stmt)).scalar_one_or_none()
    if history is not None:
        return {
            "cost": to_optional_float(history.cost),
            "list_price": to_optional_float(history.list_price),
            "effective_date": history.effective_date,
        }

    product = await session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return {
        "cost": to_optional_float(product.cost),
        "list_price": to_optional_float(product.list_price),
        "effective_date": None,
    }


@report("price_history")
async def get_price_history(session: AsyncSession, product_id: uuid.UUID) -> List[Dict[str, Any]]:
    """All pricing records for a product, newest first."""
    stmt = (
        select(ProductPriceHistory)
        .where(ProductPriceHistory.product_id == product_id)
        .order_by(ProductPriceHistory.effective_date.desc(), ProductPriceHistory.created_at.desc())
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [
        {
            "id": row.id,
            "cost": to_optional_float(row.cost),
            "list_price": to_optional_float(row.list_price),
            "effective_date": row.effective_date,
            "notes": row.notes,
        }
        for row in rows
    ]
