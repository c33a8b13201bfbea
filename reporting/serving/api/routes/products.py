"""
Products API Endpoints

Product listing, price and margin distributions, and the pricing write
path with its history.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.filters import TypedFilters
from reporting.database.connection import get_session
from reporting.reports.pricing import (
    MAX_PRICE,
    UNSET,
    get_price_history,
    get_pricing_at_date,
    update_product_pricing,
)
from reporting.reports.products import (
    get_product,
    list_products,
    margin_distribution,
    price_distribution,
    product_listing_options,
    product_row,
)
from reporting.serving.api.dependencies import listing_filters
from reporting.serving.api.schemas import (
    CamelModel,
    DistributionModel,
    PageResponse,
    distribution_response,
    page_response,
)

router = APIRouter()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class ProductRow(CamelModel):
    """Product with pricing; margin fields are null and marginDisplay "N/A" when pricing is unknown"""
    id: UUID
    product_code: str
    name: str
    description: Optional[str] = None
    family: Optional[str] = None
    material_type: Optional[str] = None
    units_per_package: Optional[int] = None
    cost: Optional[float] = None
    list_price: Optional[float] = None
    margin_percentage: Optional[float] = None
    margin_amount: Optional[float] = None
    margin_display: str
    list_price_display: str
    period_revenue: Optional[float] = None
    period_units: Optional[float] = None


class PricingUpdateRequest(CamelModel):
    """
    Pricing change. Omitted fields are kept; an explicit null clears the
    field (pricing unknown).
    """
    cost: Optional[float] = Field(default=None, ge=0, le=float(MAX_PRICE), allow_inf_nan=False)
    list_price: Optional[float] = Field(default=None, ge=0, le=float(MAX_PRICE), allow_inf_nan=False)
    notes: Optional[str] = Field(default=None, max_length=1000)


class PricingModel(CamelModel):
    cost: Optional[float] = None
    list_price: Optional[float] = None
    effective_date: Optional[datetime] = None


class PriceHistoryRow(CamelModel):
    id: UUID
    cost: Optional[float] = None
    list_price: Optional[float] = None
    effective_date: datetime
    notes: Optional[str] = None


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=PageResponse[ProductRow])
async def list_products_endpoint(
    filters: TypedFilters = Depends(listing_filters(product_listing_options)),
    session: AsyncSession = Depends(get_session),
) -> PageResponse[ProductRow]:
    """List products with pricing, margin and sales for the period."""
    page = await list_products(session, filters)
    return page_response(page, ProductRow)


@router.get("/distribution/price", response_model=DistributionModel)
async def get_price_distribution(
    filters: TypedFilters = Depends(listing_filters(product_listing_options)),
    session: AsyncSession = Depends(get_session),
) -> DistributionModel:
    """Products per list-price range; unpriced products are counted as unknown."""
    return distribution_response(await price_distribution(session, filters))


@router.get("/distribution/margin", response_model=DistributionModel)
async def get_margin_distribution(
    filters: TypedFilters = Depends(listing_filters(product_listing_options)),
    session: AsyncSession = Depends(get_session),
) -> DistributionModel:
    """Products per margin range; incomplete pricing is counted as unknown."""
    return distribution_response(await margin_distribution(session, filters))


@router.get("/{product_code}", response_model=ProductRow)
async def get_product_endpoint(
    product_code: str,
    session: AsyncSession = Depends(get_session),
) -> ProductRow:
    product = await get_product(session, product_code)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductRow.model_validate(product)


@router.put("/{product_id}/pricing", response_model=ProductRow)
async def update_pricing_endpoint(
    product_id: UUID,
    request: PricingUpdateRequest,
    session: AsyncSession = Depends(get_session),
) -> ProductRow:
    """
    Update cost and/or list price and append a price history record in one
    transaction. 404 for an unknown product, 500 when the transaction fails.
    """
    provided = request.model_fields_set
    product = await update_product_pricing(
        session,
        product_id,
        cost=request.cost if "cost" in provided else UNSET,
        list_price=request.list_price if "list_price" in provided else UNSET,
        notes=request.notes,
    )
    return ProductRow.model_validate(
        product_row(
            {
                "id": product.id,
                "product_code": product.product_code,
                "name": product.name,
                "description": product.description,
                "family": product.family,
                "material_type": product.material_type,
                "units_per_package": product.units_per_package,
                "cost": product.cost,
                "list_price": product.list_price,
            }
        )
    )


@router.get("/{product_id}/pricing", response_model=PricingModel)
async def get_pricing_endpoint(
    product_id: UUID,
    at: Optional[datetime] = None,
    session: AsyncSession = Depends(get_session),
) -> PricingModel:
    """Pricing in force at a point in time (default now)."""
    return PricingModel.model_validate(await get_pricing_at_date(session, product_id, at))


@router.get("/{product_id}/pricing/history", response_model=List[PriceHistoryRow])
async def get_price_history_endpoint(
    product_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> List[PriceHistoryRow]:
    """Pricing records, newest first."""
    return [PriceHistoryRow.model_validate(row) for row in await get_price_history(session, product_id)]
