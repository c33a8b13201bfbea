"""
Query Building and Aggregation

Shared SQLAlchemy building blocks for every report:
- paginated listings (search, sort, offset/limit and full count)
- consumer-domain and amount filters
- current vs. comparison window aggregates, grouped or flat

Ordering is deterministic: the requested column first with NULLs last in
either direction, then the entity id ascending. Repeated calls with the
same filters return the same rows in the same order, across page
boundaries too.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog
from sqlalchemy import Select, case, exists, func, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from reporting.analytics.filters import TypedFilters
from reporting.analytics.metrics import percentage_change, to_float
from reporting.analytics.periods import DateWindow
from reporting.database.models import (
    Company,
    Customer,
    Order,
    OrderLineItem,
    Product,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# LISTINGS
# =============================================================================

@dataclass(frozen=True)
class ListingSpec:
    """
    Sortable and searchable columns of one listing.

    sort_expressions maps the public sort column name to the SQL expression
    ordered on. tie_breaker is the entity id. search_predicates build extra
    match conditions from the search term, for matches that are not a single
    column (e.g. any of a customer's emails).
    """
    sort_expressions: Mapping[str, Any]
    tie_breaker: Any
    search_columns: Sequence[Any] = ()
    search_predicates: Sequence[Callable[[str], ColumnElement]] = ()


@dataclass
class Page:
    """One page of a listing plus the count of all matching rows"""
    rows: List[Dict[str, Any]]
    total_count: int
    page: int = 1
    page_size: int = 10
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size


def search_clause(
    term: Optional[str],
    columns: Sequence[Any],
    predicates: Sequence[Callable[[str], ColumnElement]] = (),
) -> Optional[ColumnElement]:
    """Case-insensitive substring match on any column; % and _ match literally."""
    if not term or not (columns or predicates):
        return None
    clauses = [column.icontains(term, autoescape=True) for column in columns]
    clauses.extend(predicate(term) for predicate in predicates)
    return or_(*clauses)


def apply_search(
    stmt: Select,
    term: Optional[str],
    columns: Sequence[Any],
    predicates: Sequence[Callable[[str], ColumnElement]] = (),
) -> Select:
    clause = search_clause(term, columns, predicates)
    if clause is None:
        return stmt
    return stmt.where(clause)


def sort_clauses(filters: TypedFilters, spec: ListingSpec) -> List[ColumnElement]:
    """ORDER BY terms: NULL marker, requested column, then the tie-breaker."""
    expression = spec.sort_expressions.get(filters.sort_column)
    if expression is None:
        expression = next(iter(spec.sort_expressions.values()))
    ordered = expression.desc() if filters.descending else expression.asc()
    return [
        case((expression.is_(None), 1), else_=0),
        ordered,
        spec.tie_breaker.asc(),
    ]


def apply_sort(stmt: Select, filters: TypedFilters, spec: ListingSpec) -> Select:
    return stmt.order_by(*sort_clauses(filters, spec))


async def count_rows(session: AsyncSession, stmt: Select) -> int:
    """Number of rows the statement returns, ignoring pagination."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    return (await session.execute(count_stmt)).scalar_one()


async def fetch_page(
    session: AsyncSession,
    stmt: Select,
    filters: TypedFilters,
    spec: ListingSpec,
) -> Page:
    """
    Run a listing statement for one page.

    Args:
        session: Database session
        stmt: Column select with every report filter except search applied
        filters: Normalized filters (search, sort, page)
        spec: Sort and search columns of the listing

    Returns:
        Page of row mappings and the total matching count
    """
    stmt = apply_search(stmt, filters.search, spec.search_columns, spec.search_predicates)
    total = await count_rows(session, stmt)

    page_stmt = apply_sort(stmt, filters, spec).offset(filters.offset).limit(filters.limit)
    result = await session.execute(page_stmt)
    rows = [dict(row) for row in result.mappings().all()]

    logger.debug(
        "Listing page fetched",
        sort_column=filters.sort_column,
        sort_direction=filters.sort_direction,
        page=filters.page,
        rows=len(rows),
        total=total,
    )
    return Page(rows=rows, total_count=total, page=filters.page, page_size=filters.page_size)


# =============================================================================
# FILTER PREDICATES
# =============================================================================

def non_consumer_domain(domain_column: Any, domains: Sequence[str]) -> ColumnElement:
    """True for rows whose domain is missing or not a free-mail provider."""
    if not domains:
        return true()
    lowered = [d.lower() for d in domains]
    return or_(domain_column.is_(None), func.lower(domain_column).not_in(lowered))


def exclude_consumer_customers(customer_id_column: Any, domains: Sequence[str]) -> ColumnElement:
    """Exclude rows whose customer belongs to a company on a consumer domain."""
    if not domains:
        return true()
    lowered = [d.lower() for d in domains]
    consumer = (
        select(Customer.id)
        .join(Company, Customer.company_id == Company.id)
        .where(
            Customer.id == customer_id_column,
            func.lower(Company.domain).in_(lowered),
        )
    )
    return ~exists(consumer)


def amount_bounds(column: Any, filters: TypedFilters) -> List[ColumnElement]:
    conditions = []
    if filters.min_amount is not None:
        conditions.append(column >= filters.min_amount)
    if filters.max_amount is not None:
        conditions.append(column <= filters.max_amount)
    return conditions


def date_within(column: Any, start: datetime, end: datetime) -> ColumnElement:
    """Inclusive day-granularity bounds on a DATE column."""
    return column.between(start.date(), end.date())


# =============================================================================
# PERIOD AGGREGATES
# =============================================================================

@dataclass
class PeriodTotals:
    revenue: float = 0.0
    order_count: int = 0
    customer_count: int = 0


async def order_totals(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    conditions: Sequence[ColumnElement] = (),
) -> PeriodTotals:
    """Order revenue, order count and distinct customers between two dates."""
    stmt = select(
        func.coalesce(func.sum(Order.total_amount), 0).label("revenue"),
        func.count(Order.id).label("order_count"),
        func.count(func.distinct(Order.customer_id)).label("customer_count"),
    ).where(date_within(Order.order_date, start, end), *conditions)
    row = (await session.execute(stmt)).one()
    return PeriodTotals(
        revenue=to_float(row.revenue),
        order_count=int(row.order_count or 0),
        customer_count=int(row.customer_count or 0),
    )


async def period_totals(
    session: AsyncSession,
    window: DateWindow,
    conditions: Sequence[ColumnElement] = (),
):
    """Totals for the window and, when it has one, the comparison window."""
    current = await order_totals(session, window.start, window.end, conditions)
    previous = None
    if window.has_comparison:
        previous = await order_totals(session, window.compare_start, window.compare_end, conditions)
    return current, previous


# =============================================================================
# GROUPED COMPARISON
# =============================================================================

@dataclass
class GroupTotals:
    revenue: float = 0.0
    quantity: float = 0.0
    order_count: int = 0
    customer_count: int = 0


@dataclass
class GroupComparison:
    """One group's totals for the current and comparison windows"""
    group_key: str
    current: GroupTotals = field(default_factory=GroupTotals)
    previous: Optional[GroupTotals] = None
    # Display name when the key is an identity such as a company domain
    label: Optional[str] = None

    @property
    def growth(self) -> Optional[Dict[str, float]]:
        if self.previous is None:
            return None
        return {
            "revenue": percentage_change(self.current.revenue, self.previous.revenue),
            "quantity": percentage_change(self.current.quantity, self.previous.quantity),
            "order_count": percentage_change(self.current.order_count, self.previous.order_count),
            "customer_count": percentage_change(self.current.customer_count, self.previous.customer_count),
        }


def line_item_source(stmt: Select) -> Select:
    """Line items with their order, product, customer and company."""
    return (
        stmt.select_from(OrderLineItem)
        .join(Order, OrderLineItem.order_id == Order.id)
        .outerjoin(Product, Product.product_code == OrderLineItem.product_code)
        .join(Customer, Order.customer_id == Customer.id)
        .outerjoin(Company, Customer.company_id == Company.id)
    )


async def _group_totals(
    session: AsyncSession,
    key: ColumnElement,
    start: datetime,
    end: datetime,
    conditions: Sequence[ColumnElement],
    label: ColumnElement,
) -> Tuple[Dict[str, GroupTotals], Dict[str, str]]:
    stmt = line_item_source(
        select(
            key.label("group_key"),
            func.min(label).label("label"),
            func.coalesce(func.sum(OrderLineItem.line_amount), 0).label("revenue"),
            func.coalesce(func.sum(OrderLineItem.quantity), 0).label("quantity"),
            func.count(func.distinct(Order.id)).label("order_count"),
            func.count(func.distinct(Order.customer_id)).label("customer_count"),
        )
    ).where(date_within(Order.order_date, start, end), *conditions).group_by(key)

    rows = (await session.execute(stmt)).all()
    totals = {
        row.group_key: GroupTotals(
            revenue=to_float(row.revenue),
            quantity=to_float(row.quantity),
            order_count=int(row.order_count or 0),
            customer_count=int(row.customer_count or 0),
        )
        for row in rows
    }
    return totals, {row.group_key: row.label for row in rows}


async def grouped_comparison(
    session: AsyncSession,
    group_column: Any,
    window: DateWindow,
    conditions: Sequence[ColumnElement] = (),
    group_value: Optional[str] = None,
    null_label: str = "Unclassified",
    label_column: Any = None,
) -> List[GroupComparison]:
    """
    Line-item revenue, quantity, distinct orders and distinct customers per
    group, for the current and comparison windows separately, joined by
    group key.

    Args:
        session: Database session
        group_column: Categorical column to group by (e.g. Product.family)
        window: Resolved period; previous is None when it has no comparison
        conditions: Extra predicates applied to both windows
        group_value: Restrict to one group; an unknown value yields []
        null_label: Group key used for rows with no category
        label_column: Display name for each group when group_column is an
            identity (e.g. group by Company.domain, label with Company.name)

    Returns:
        Groups ordered by current revenue desc, then key. A group present in
        only one window carries zeros for the other.
    """
    key = func.coalesce(group_column, null_label)
    label = key if label_column is None else func.coalesce(label_column, key)
    conditions = list(conditions)
    if group_value is not None:
        conditions.append(key == group_value)

    current, labels = await _group_totals(session, key, window.start, window.end, conditions, label)
    previous: Optional[Dict[str, GroupTotals]] = None
    if window.has_comparison:
        previous, previous_labels = await _group_totals(
            session, key, window.compare_start, window.compare_end, conditions, label
        )
        labels = {**previous_labels, **labels}

    keys = set(current)
    if previous is not None:
        keys.update(previous)

    groups = [
        GroupComparison(
            group_key=group_key,
            current=current.get(group_key, GroupTotals()),
            previous=None if previous is None else previous.get(group_key, GroupTotals()),
            label=labels.get(group_key, group_key),
        )
        for group_key in keys
    ]
    groups.sort(key=lambda g: (-g.current.revenue, g.group_key))

    logger.debug(
        "Grouped comparison computed",
        groups=len(groups),
        has_comparison=window.has_comparison,
    )
    return groups
