"""
Reorder Planning

Days of supply per product from its latest inventory snapshot and the
trailing demand window, with a stock status and the quantities needed to
cover each configured target horizon.

Demand is the average daily units sold over the window. Days remaining is
available stock (on hand minus committed, floored at 0) over daily demand.
Products with no sales in the window have no demand to plan against and
are left out of both the listing and the summary.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

import structlog
from sqlalchemy import Float, case, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporting.analytics.errors import report
from reporting.analytics.filters import ASC, DESC, ListingOptions, TypedFilters
from reporting.analytics.metrics import (
    NEEDS_REORDER,
    STATUS_THRESHOLDS,
    SUFFICIENT,
    days_of_supply,
    forecast_daily_demand,
    inventory_status,
    reorder_quantity,
    to_float,
    to_optional_float,
)
from reporting.analytics.query import ListingSpec, Page, fetch_page
from reporting.config.settings import Settings, get_settings
from reporting.database.models import Order, OrderLineItem, Product
from reporting.reports.common import listing_options
from reporting.reports.inventory import latest_snapshots

logger = structlog.get_logger(__name__)

REORDER_SORT_COLUMNS = {
    "daysRemaining": ASC,
    "productCode": ASC,
    "name": ASC,
    "dailyDemand": DESC,
    "available": DESC,
    "unitsSold": DESC,
}

STATUSES = tuple(status for _, status in STATUS_THRESHOLDS) + (SUFFICIENT,)


def reorder_listing_options(settings: Optional[Settings] = None) -> ListingOptions:
    settings = settings or get_settings()
    return listing_options(
        REORDER_SORT_COLUMNS,
        default_sort="daysRemaining",
        default_page_size=settings.reporting.large_page_size,
        flags=("onlyNeedsReorder",),
        categories=("inventoryStatus", "family"),
        settings=settings,
    )


def _reorder_statement(today: datetime, window_days: int):
    """
    Products with a snapshot and sales in the window, their demand and the
    derived days-remaining and status expressions.
    """
    window_start = (today - timedelta(days=window_days)).date()
    demand = (
        select(
            OrderLineItem.product_code.label("product_code"),
            func.sum(OrderLineItem.quantity).label("units_sold"),
        )
        .join(Order, OrderLineItem.order_id == Order.id)
        .where(Order.order_date > window_start, Order.order_date <= today.date())
        .group_by(OrderLineItem.product_code)
        .subquery()
    )
    snapshot = latest_snapshots()

    units_sold = func.coalesce(demand.c.units_sold, 0)
    available = snapshot.c.quantity_on_hand - snapshot.c.quantity_committed
    floored = case((available < 0, 0), else_=available)
    daily_demand = cast(units_sold, Float) / window_days
    days_remaining = case(
        (units_sold > 0, cast(floored, Float) * window_days / cast(units_sold, Float)),
        else_=None,
    )
    # NULL days_remaining falls through to the else branch
    status = case(
        *[(days_remaining < limit, label) for limit, label in STATUS_THRESHOLDS],
        else_=SUFFICIENT,
    )

    stmt = (
        select(
            Product.id.label("id"),
            Product.product_code.label("product_code"),
            Product.name.label("name"),
            Product.family.label("family"),
            Product.cost.label("cost"),
            snapshot.c.snapshot_date.label("snapshot_date"),
            snapshot.c.quantity_on_hand.label("quantity_on_hand"),
            snapshot.c.quantity_on_order.label("quantity_on_order"),
            snapshot.c.quantity_committed.label("quantity_committed"),
            units_sold.label("units_sold"),
        )
        .select_from(Product)
        .join(snapshot, snapshot.c.product_id == Product.id)
        .outerjoin(demand, demand.c.product_code == Product.product_code)
        .where(units_sold > 0)
    )
    expressions = {
        "daysRemaining": days_remaining,
        "productCode": Product.product_code,
        "name": Product.name,
        "dailyDemand": daily_demand,
        "available": available,
        "unitsSold": units_sold,
    }
    return stmt, expressions, status


def reorder_row(
    row: Dict[str, Any],
    window_days: int,
    targets: Sequence[int],
    today: datetime,
) -> Dict[str, Any]:
    """Demand, days of supply, status and per-target reorder quantities for one product."""
    on_hand = to_float(row["quantity_on_hand"])
    on_order = to_float(row["quantity_on_order"])
    committed = to_float(row["quantity_committed"])
    available = on_hand - committed
    projected = available + on_order

    daily = forecast_daily_demand(row["units_sold"], window_days)
    days = days_of_supply(available, daily)
    status = inventory_status(days)
    cost = to_optional_float(row["cost"])
    inventory_value = None if cost is None else round(on_hand * cost, 2)

    reorder = {}
    for target in targets:
        quantity = reorder_quantity(target, projected, daily)
        reorder[target] = {
            "quantity": quantity,
            "value": None if cost is None else round(quantity * cost, 2),
        }

    stockout = None
    if days is not None:
        stockout = (today + timedelta(days=int(days))).date()

    return {
        "id": row["id"],
        "product_code": row["product_code"],
        "name": row["name"],
        "family": row["family"],
        "snapshot_date": row["snapshot_date"],
        "quantity_on_hand": on_hand,
        "quantity_on_order": on_order,
        "quantity_committed": committed,
        "available": available,
        "projected": projected,
        "inventory_value": inventory_value,
        "units_sold": to_float(row["units_sold"]),
        "daily_demand": round(daily, 4),
        "days_remaining": None if days is None else round(days, 1),
        "estimated_stockout_date": stockout,
        "inventory_status": status,
        "needs_reorder": status in NEEDS_REORDER,
        "reorder": reorder,
    }


@report("reorder_planning")
async def list_reorder_items(
    session: AsyncSession,
    filters: TypedFilters,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> Page:
    """
    Reorder planning listing, most urgent first by default.

    Args:
        session: Database session
        filters: onlyNeedsReorder flag, inventoryStatus and family categories
        now: Reference time for the demand window
        settings: Demand window and target horizons

    Returns:
        Page of planning rows; unknown days remaining sort last
    """
    settings = settings or get_settings()
    today = now or datetime.now()
    window_days = settings.reporting.demand_window_days
    targets = settings.reporting.reorder_targets_days

    stmt, expressions, status = _reorder_statement(today, window_days)

    if filters.flag("onlyNeedsReorder"):
        stmt = stmt.where(status.in_(NEEDS_REORDER))
    wanted = filters.category("inventoryStatus")
    if wanted:
        stmt = stmt.where(status == wanted.upper())
    if filters.category("family"):
        stmt = stmt.where(Product.family == filters.category("family"))

    spec = ListingSpec(
        sort_expressions=expressions,
        tie_breaker=Product.id,
        search_columns=(Product.product_code, Product.name),
    )
    page = await fetch_page(session, stmt, filters, spec)
    page.rows = [reorder_row(row, window_days, targets, today) for row in page.rows]

    logger.info("Reorder page fetched", page=filters.page, rows=len(page.rows), total=page.total_count)
    return page


@report("reorder_summary")
async def reorder_summary(
    session: AsyncSession,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """
    Product counts and shares per status, total reorder units and value per
    target horizon, average days until stockout of the products that need
    reordering, and upcoming stockouts by date with the SKUs running out
    and their stock value at cost.
    """
    settings = settings or get_settings()
    today = now or datetime.now()
    window_days = settings.reporting.demand_window_days
    targets = settings.reporting.reorder_targets_days

    stmt, _, _ = _reorder_statement(today, window_days)
    result = await session.execute(stmt.order_by(Product.product_code))
    rows = [reorder_row(dict(row), window_days, targets, today) for row in result.mappings().all()]

    counts = {status: 0 for status in STATUSES}
    for row in rows:
        counts[row["inventory_status"]] += 1
    total = len(rows)

    totals = {}
    for target in targets:
        needing = [row["reorder"][target] for row in rows if row["needs_reorder"]]
        totals[target] = {
            "quantity": sum(item["quantity"] for item in needing),
            "value": round(sum(item["value"] or 0.0 for item in needing), 2),
        }

    urgent_days = [row["days_remaining"] for row in rows if row["needs_reorder"] and row["days_remaining"] is not None]
    avg_days = round(sum(urgent_days) / len(urgent_days), 1) if urgent_days else None

    horizon = (today + timedelta(days=STATUS_THRESHOLDS[-1][0])).date()
    timeline: Dict[Any, Dict[str, Any]] = {}
    for row in rows:
        stockout = row["estimated_stockout_date"]
        if stockout is None or stockout > horizon:
            continue
        point = timeline.setdefault(stockout, {"stockout_date": stockout, "skus": [], "total_value": 0.0})
        point["skus"].append(row["product_code"])
        # Unknown cost adds nothing
        point["total_value"] = round(point["total_value"] + (row["inventory_value"] or 0.0), 2)

    summary = {
        "total_products": total,
        "status_counts": counts,
        "status_percentages": {
            status: round(count * 100.0 / total, 1) if total else 0.0
            for status, count in counts.items()
        },
        "needs_reorder_count": sum(counts[status] for status in NEEDS_REORDER),
        "reorder_totals": totals,
        "avg_days_until_stockout": avg_days,
        "stockout_timeline": [
            dict(timeline[day], product_count=len(timeline[day]["skus"])) for day in sorted(timeline)
        ],
    }
    logger.info("Reorder summary computed", total=total, needs_reorder=summary["needs_reorder_count"])
    return summary
