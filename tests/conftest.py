"""
Test Suite Configuration
"""
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from reporting.config.settings import Settings
from reporting.database.connection import Database
from reporting.database.models import (
    Base,
    Company,
    Customer,
    CustomerEmail,
    CustomerPhone,
    InventorySnapshot,
    Order,
    OrderLineItem,
    Product,
)
from reporting.serving.api.main import create_app

# Reference time for every store-backed test
NOW = datetime(2025, 6, 15, 12, 0, 0)
TODAY = NOW.date()

SQLITE_URL = "sqlite+aiosqlite://"


def _engine():
    return create_async_engine(
        SQLITE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def now() -> datetime:
    """Reference time matching the dataset"""
    return NOW


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(app_env="testing", debug=True)


@pytest_asyncio.fixture
async def test_engine():
    """In-memory database with the reporting schema"""
    engine = _engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def empty_engine():
    """In-memory database without any tables; every report query fails"""
    engine = _engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


def _order(number: str, customer: Customer, order_date: date, total: str, **kwargs) -> Order:
    return Order(
        order_number=number,
        customer_id=customer.id,
        order_date=order_date,
        total_amount=Decimal(total),
        **kwargs,
    )


def _line(order: Order, product_code: str, quantity: int, unit_price: str) -> OrderLineItem:
    price = Decimal(unit_price)
    return OrderLineItem(
        order_id=order.id,
        product_code=product_code,
        quantity=Decimal(quantity),
        unit_price=price,
        line_amount=price * quantity,
    )


@pytest_asyncio.fixture
async def dataset(test_db: AsyncSession) -> Dict[str, Any]:
    """
    Small committed dataset, dated relative to NOW.

    Last 30 days: O-1001, O-1002, O-1004, O-1005, O-1007 (revenue 835).
    Comparison window: O-1003 (revenue 100). O-1006 is seven months old.
    dave buys through a consumer domain; erin has no company; frank never ordered.
    """
    acme = Company(name="Acme Corp", domain="acme.com", enriched_at=NOW - timedelta(days=5))
    globex = Company(name="Globex", domain="globex.com")
    gmail = Company(name="Gmail Buyers", domain="gmail.com", enriched_at=NOW - timedelta(days=100))
    test_db.add_all([acme, globex, gmail])
    await test_db.flush()

    customers = {
        "alice": Customer(name="Alice Archer", company_id=acme.id),
        "bob": Customer(name="Bob Baker", company_id=acme.id),
        "carol": Customer(name="Carol Cole", company_id=globex.id),
        "dave": Customer(name="Dave Dunn", company_id=gmail.id),
        "erin": Customer(name="Erin Ellis"),
        "frank": Customer(name="Frank Ford", company_id=globex.id),
    }
    test_db.add_all(customers.values())
    await test_db.flush()

    test_db.add_all([
        CustomerEmail(customer_id=customers["alice"].id, email="alice@acme.com", is_primary=True,
                      email_marketable=True, key_account_contact=True),
        CustomerEmail(customer_id=customers["bob"].id, email="bob@acme.com", is_primary=True,
                      email_marketable=False),
        CustomerEmail(customer_id=customers["carol"].id, email="carol@globex.com", is_primary=True),
        CustomerEmail(customer_id=customers["dave"].id, email="dave@gmail.com", is_primary=True,
                      email_marketable=True),
        CustomerEmail(customer_id=customers["erin"].id, email="erin@example.org", is_primary=True),
        CustomerPhone(customer_id=customers["alice"].id, phone="555-0100", is_primary=True),
    ])

    products = {
        "P-001": Product(product_code="P-001", name="Oak Table", family="Furniture", material_type="Wood",
                         cost=Decimal("40.00"), list_price=Decimal("100.00")),
        "P-002": Product(product_code="P-002", name="Pine Chair", family="Furniture", material_type="Wood",
                         cost=Decimal("30.00"), list_price=Decimal("50.00")),
        "P-003": Product(product_code="P-003", name="Steel Lamp", family="Lighting", material_type="Metal",
                         list_price=Decimal("25.00")),
        "P-004": Product(product_code="P-004", name="Widget 50% off", family="Lighting",
                         cost=Decimal("5.00")),
        "P-005": Product(product_code="P-005", name="Widget 500", material_type="Metal"),
    }
    test_db.add_all(products.values())
    await test_db.flush()

    orders = {
        "O-1001": _order("O-1001", customers["alice"], TODAY - timedelta(days=5), "300.00",
                         status="closed", payment_status="paid", sales_channel="Web"),
        "O-1002": _order("O-1002", customers["bob"], TODAY - timedelta(days=14), "160.00",
                         status="open", payment_status="unpaid", sales_channel="Phone"),
        "O-1003": _order("O-1003", customers["carol"], TODAY - timedelta(days=45), "100.00",
                         status="closed", payment_status="paid", sales_channel="Web"),
        "O-1004": _order("O-1004", customers["dave"], TODAY - timedelta(days=3), "50.00",
                         status="closed", payment_status="paid", sales_channel="Web"),
        "O-1005": _order("O-1005", customers["erin"], TODAY - timedelta(days=1), "25.00",
                         status="open", payment_status="paid"),
        "O-1006": _order("O-1006", customers["alice"], date(2024, 12, 1), "400.00",
                         status="closed", payment_status="paid", sales_channel="Web"),
        "O-1007": _order("O-1007", customers["carol"], TODAY - timedelta(days=5), "300.00",
                         status="closed", payment_status="paid", sales_channel="Phone"),
    }
    test_db.add_all(orders.values())
    await test_db.flush()

    test_db.add_all([
        _line(orders["O-1001"], "P-001", 2, "100.00"),
        _line(orders["O-1001"], "P-002", 2, "50.00"),
        _line(orders["O-1002"], "P-003", 6, "25.00"),
        _line(orders["O-1002"], "X-999", 1, "10.00"),
        _line(orders["O-1003"], "P-001", 1, "100.00"),
        _line(orders["O-1004"], "P-002", 1, "50.00"),
        _line(orders["O-1005"], "P-003", 1, "25.00"),
        _line(orders["O-1006"], "P-001", 4, "100.00"),
        _line(orders["O-1007"], "P-002", 6, "50.00"),
    ])

    latest = TODAY - timedelta(days=1)
    test_db.add_all([
        InventorySnapshot(product_id=products["P-001"].id, snapshot_date=TODAY - timedelta(days=14),
                          quantity_on_hand=999, quantity_on_order=0, quantity_committed=0, quantity_change=0),
        InventorySnapshot(product_id=products["P-001"].id, snapshot_date=latest,
                          quantity_on_hand=10, quantity_on_order=0, quantity_committed=4, quantity_change=-989),
        InventorySnapshot(product_id=products["P-002"].id, snapshot_date=latest,
                          quantity_on_hand=2, quantity_on_order=1, quantity_committed=0, quantity_change=-3),
        InventorySnapshot(product_id=products["P-003"].id, snapshot_date=latest,
                          quantity_on_hand=5, quantity_on_order=0, quantity_committed=1, quantity_change=0),
        InventorySnapshot(product_id=products["P-004"].id, snapshot_date=latest,
                          quantity_on_hand=0, quantity_on_order=0, quantity_committed=0, quantity_change=0),
    ])
    await test_db.commit()

    return {
        "companies": {"acme": acme, "globex": globex, "gmail": gmail},
        "customers": customers,
        "products": products,
        "orders": orders,
    }


@pytest_asyncio.fixture
async def client(test_settings, test_engine, dataset) -> AsyncGenerator[httpx.AsyncClient, None]:
    """API client over the seeded database"""
    app = create_app(settings=test_settings, database=Database(test_engine))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def broken_client(test_settings, empty_engine) -> AsyncGenerator[httpx.AsyncClient, None]:
    """API client over a database with no tables"""
    app = create_app(settings=test_settings, database=Database(empty_engine))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
