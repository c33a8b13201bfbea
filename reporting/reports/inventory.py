"""
Inventory Reports

Current stock position per product (latest snapshot) and total stock over
time.
"""

from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import ASC, DESC, ListingOptions, TypedFilters
from reporting.analytics.metrics import to_float
from reporting.analytics.periods import DateWindow
from reporting.analytics.query import ListingSpec, Page, date_within, fetch_page
from reporting.config.settings import Settings, get_settings
from reporting.database.models import InventorySnapshot, Product
from reporting.reports.common import listing_options

logger = structlog.get_logger(__name__)

INVENTORY_SORT_COLUMNS = {
    "productCode": ASC,
    "name": ASC,
    "quantityOnHand": DESC,
    "available": DESC,
    "quantityChange": DESC,
    "snapshotDate": DESC,
}


def inventory_listing_options(settings: Optional[Settings] = None) -> ListingOptions:
    settings = settings or get_settings()
    return listing_options(
        INVENTORY_SORT_COLUMNS,
        default_sort="productCode",
        default_page_size=settings.reporting.large_page_size,
        categories=("family", "materialType"),
        settings=settings,
    )


def latest_snapshots():
    """Subquery of each product's most recent snapshot row."""
    latest = (
        select(
            InventorySnapshot.product_id.label("product_id"),
            func.max(InventorySnapshot.snapshot_date).label("snapshot_date"),
        )
        .group_by(InventorySnapshot.product_id)
        .subquery()
    )
    return (
        select(
            InventorySnapshot.product_id.label("product_id"),
            InventorySnapshot.snapshot_date.label("snapshot_date"),
            InventorySnapshot.quantity_on_hand.label("quantity_on_hand"),
            InventorySnapshot.quantity_on_order.label("quantity_on_order"),
            InventorySnapshot.quantity_committed.label("quantity_committed"),
            InventorySnapshot.quantity_change.label("quantity_change"),
        )
        .join(
            latest,
            and_(
                latest.c.product_id == InventorySnapshot.product_id,
                latest.c.snapshot_date == InventorySnapshot.snapshot_date,
            ),
        )
        .subquery()
    )


@report("inventory_status")
async def list_inventory(session: AsyncSession, filters: TypedFilters) -> Page:
    """Latest stock position per product; search covers product code and name."""
    snapshot = latest_snapshots()
    available = snapshot.c.quantity_on_hand - snapshot.c.quantity_committed

    stmt = (
        select(
            Product.id.label("id"),
            Product.product_code.label("product_code"),
            Product.name.label("name"),
            Product.family.label("family"),
            Product.material_type.label("material_type"),
            snapshot.c.snapshot_date.label("snapshot_date"),
            snapshot.c.quantity_on_hand.label("quantity_on_hand"),
            snapshot.c.quantity_on_order.label("quantity_on_order"),
            snapshot.c.quantity_committed.label("quantity_committed"),
            snapshot.c.quantity_change.label("quantity_change"),
            available.label("available"),
        )
        .select_from(Product)
        .join(snapshot, snapshot.c.product_id == Product.id)
    )
    if filters.category("family"):
        stmt = stmt.where(Product.family == filters.category("family"))
    if filters.category("materialType"):
        stmt = stmt.where(Product.material_type == filters.category("materialType"))

    spec = ListingSpec(
        sort_expressions={
            "productCode": Product.product_code,
            "name": Product.name,
            "quantityOnHand": snapshot.c.quantity_on_hand,
            "available": available,
            "quantityChange": snapshot.c.quantity_change,
            "snapshotDate": snapshot.c.snapshot_date,
        },
        tie_breaker=Product.id,
        search_columns=(Product.product_code, Product.name),
    )

    page = await fetch_page(session, stmt, filters, spec)
    page.rows = [_inventory_row(row) for row in page.rows]
    return page


def _inventory_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "product_code": row["product_code"],
        "name": row["name"],
        "family": row["family"],
        "material_type": row["material_type"],
        "snapshot_date": row["snapshot_date"],
        "quantity_on_hand": to_float(row["quantity_on_hand"]),
        "quantity_on_order": to_float(row["quantity_on_order"]),
        "quantity_committed": to_float(row["quantity_committed"]),
        "quantity_change": to_float(row["quantity_change"]),
        "available": to_float(row["available"]),
    }


@report("inventory_trend")
async def inventory_trend(
    session: AsyncSession,
    window: DateWindow,
    product_code: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Total on-hand, on-order and committed quantity per snapshot date."""
    stmt = (
        select(
            InventorySnapshot.snapshot_date,
            func.sum(InventorySnapshot.quantity_on_hand).label("on_hand"),
            func.sum(InventorySnapshot.quantity_on_order).label("on_order"),
            func.sum(InventorySnapshot.quantity_committed).label("committed"),
        )
        .where(date_within(InventorySnapshot.snapshot_date, window.start, window.end))
        .group_by(InventorySnapshot.snapshot_date)
        .order_by(InventorySnapshot.snapshot_date)
    )
    if product_code:
        stmt = stmt.join(Product, Product.id == InventorySnapshot.product_id).where(
            Product.product_code == product_code
        )

    result = await session.execute(stmt)
    return [
        {
            "snapshot_date": row.snapshot_date,
            "quantity_on_hand": to_float(row.on_hand),
            "quantity_on_order": to_float(row.on_order),
            "quantity_committed": to_float(row.committed),
        }
        for row in result.all()
    ]
