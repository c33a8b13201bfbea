"""
Database Models - Sales Reporting Schema

Relational model read by the reporting pipeline:

Sales:
- Order: order header with totals, status and sales channel
- OrderLineItem: order lines, joined to products by product code

Accounts:
- Company: business account keyed by email domain
- Customer: buyer, optionally attached to a company
- CustomerEmail / CustomerPhone: contact points flagged primary or not

Catalog and stock:
- Product: catalog entry with optional cost and list price
- ProductPriceHistory: append-only pricing log
- InventorySnapshot: daily stock position per product

All rows are written by the ingestion process except price history, which
the pricing write path appends to.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, List
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    """Order status enumeration"""
    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status enumeration"""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class InventoryStatus(str, Enum):
    """Stock position relative to forecast demand"""
    CRITICAL = "CRITICAL"
    LOW = "LOW"
    MODERATE = "MODERATE"
    SUFFICIENT = "SUFFICIENT"


# Enrichment payloads are opaque JSON; JSONB on PostgreSQL
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# ACCOUNTS
# =============================================================================

class Company(Base):
    """
    Company Table

    Business account identified by its email domain. The enrichment blob is
    supplied by an external provider and never interpreted here.
    """
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    enrichment: Mapped[Optional[dict]] = mapped_column(JSONType)
    enriched_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    customers: Mapped[List["Customer"]] = relationship(back_populates="company")


class Customer(Base):
    """
    Customer Table

    A buyer. Customers without a company are individual (consumer) buyers.
    """
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("companies.id"))
    status: Mapped[str] = mapped_column(String(30), default="active")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    company: Mapped[Optional["Company"]] = relationship(back_populates="customers")
    emails: Mapped[List["CustomerEmail"]] = relationship(back_populates="customer")
    phones: Mapped[List["CustomerPhone"]] = relationship(back_populates="customer")
    orders: Mapped[List["Order"]] = relationship(back_populates="customer")

    __table_args__ = (
        Index("ix_customers_company", "company_id"),
    )


class CustomerEmail(Base):
    """Customer email address"""
    __tablename__ = "customer_emails"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    email_marketable: Mapped[Optional[bool]] = mapped_column(Boolean)
    key_account_contact: Mapped[Optional[bool]] = mapped_column(Boolean)

    customer: Mapped["Customer"] = relationship(back_populates="emails")

    __table_args__ = (
        Index("ix_customer_emails_customer", "customer_id"),
    )


class CustomerPhone(Base):
    """Customer phone number"""
    __tablename__ = "customer_phones"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    customer: Mapped["Customer"] = relationship(back_populates="phones")


# =============================================================================
# SALES
# =============================================================================

class Order(Base):
    """
    Order Table

    Order header. Revenue breakdowns use line amounts; order-level metrics
    use total_amount.
    """
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(30), default=OrderStatus.OPEN.value)
    payment_status: Mapped[str] = mapped_column(String(30), default=PaymentStatus.UNPAID.value)
    sales_channel: Mapped[Optional[str]] = mapped_column(String(100))
    customer_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    customer: Mapped["Customer"] = relationship(back_populates="orders")
    line_items: Mapped[List["OrderLineItem"]] = relationship(back_populates="order")

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_amount_non_negative"),
        Index("ix_orders_date", "order_date"),
        Index("ix_orders_customer", "customer_id"),
        Index("ix_orders_channel", "sales_channel"),
    )


class OrderLineItem(Base):
    """
    Order Line Item Table

    line_amount equals quantity x unit_price up to rounding.
    """
    __tablename__ = "order_line_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("orders.id"), nullable=False)
    product_code: Mapped[Optional[str]] = mapped_column(String(50))
    description: Mapped[Optional[str]] = mapped_column(Text)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    line_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    order: Mapped["Order"] = relationship(back_populates="line_items")

    __table_args__ = (
        Index("ix_order_line_items_order", "order_id"),
        Index("ix_order_line_items_product_code", "product_code"),
    )


# =============================================================================
# CATALOG AND STOCK
# =============================================================================

class Product(Base):
    """
    Product Table

    cost and list_price stay NULL until pricing is set; NULL means unknown,
    never zero.
    """
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    material_type: Mapped[Optional[str]] = mapped_column(String(100))
    family: Mapped[Optional[str]] = mapped_column(String(100))
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    list_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    units_per_package: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    price_history: Mapped[List["ProductPriceHistory"]] = relationship(back_populates="product")
    snapshots: Mapped[List["InventorySnapshot"]] = relationship(back_populates="product")

    __table_args__ = (
        Index("ix_products_family", "family"),
        Index("ix_products_material", "material_type"),
    )


class ProductPriceHistory(Base):
    """
    Product Price History Table

    Append-only. The newest row with effective_date <= X is the pricing in
    force at X.
    """
    __tablename__ = "product_price_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    list_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    effective_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    product: Mapped["Product"] = relationship(back_populates="price_history")

    __table_args__ = (
        Index("ix_price_history_product_effective", "product_id", "effective_date"),
    )


class InventorySnapshot(Base):
    """
    Inventory Snapshot Table

    One row per product per day.
    """
    __tablename__ = "inventory_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    quantity_on_hand: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    quantity_on_order: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    quantity_committed: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    quantity_change: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)

    product: Mapped["Product"] = relationship(back_populates="snapshots")

    __table_args__ = (
        UniqueConstraint("product_id", "snapshot_date", name="uq_inventory_product_date"),
        Index("ix_inventory_snapshot_date", "snapshot_date"),
    )
