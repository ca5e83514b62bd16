"""
Speed.Sales Database Models

5 tables for the maker business console.
Multi-tenant via user_id (the authenticated actor) on all tables.

Tables:
  1. products      - Inventory items with stock and sold counters
  2. orders        - One row per recorded sale
  3. expenses      - Spending log
  4. cs_inquiries  - Customer service tickets
  5. daily_logs    - Command console history (utterance + reply)
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
    types,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID


class GUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL UUID when available, stores as CHAR(36) on SQLite.
    """

    impl = types.String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(types.String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return str(value) if isinstance(value, uuid.UUID) else value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


from sqlalchemy.orm import relationship

from db.session import Base

CS_STATUSES = ("open", "in_progress", "waiting", "resolved", "closed")
ACTIVE_CS_STATUSES = ("open", "in_progress", "waiting")
SALES_CHANNELS = ("Instagram", "Naver", "Offline")
EXPENSE_CATEGORIES = ("material", "shipping", "marketing", "etc")

# ─── 1. Products ───────────────────────────────────────────────────────────


class Product(Base):
    __tablename__ = "products"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), nullable=False)
    product_name = Column(String(255), nullable=False)
    unique_id = Column(String(100))  # maker-supplied code / SKU
    stock_count = Column(Integer, nullable=False, default=0)
    sold_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_products_user", "user_id"),
        Index("ix_products_user_unique_id", "user_id", "unique_id"),
        CheckConstraint("stock_count >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint("sold_count >= 0", name="ck_product_sold_non_negative"),
    )

    orders = relationship("Order", back_populates="product")


# ─── 2. Orders ─────────────────────────────────────────────────────────────


class Order(Base):
    __tablename__ = "orders"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), nullable=False)
    product_id = Column(GUID(), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    customer_name = Column(String(255), nullable=False, default="Unknown Customer")
    channel = Column(String(20), nullable=False, default="Offline")
    total_price = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="paid")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_orders_user_time", "user_id", "created_at"),
        CheckConstraint("quantity > 0", name="ck_order_quantity_positive"),
        CheckConstraint("channel IN ('Instagram', 'Naver', 'Offline')", name="ck_order_channel"),
    )

    product = relationship("Product", back_populates="orders")


# ─── 3. Expenses ───────────────────────────────────────────────────────────


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), nullable=False)
    date = Column(Date, nullable=False, default=date.today)
    description = Column(Text, nullable=False)
    amount = Column(Integer, nullable=False, default=0)  # KRW
    category = Column(String(20), nullable=False, default="etc")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_expenses_user_date", "user_id", "date"),
        CheckConstraint("amount >= 0", name="ck_expense_amount_non_negative"),
        CheckConstraint(
            "category IN ('material', 'shipping', 'marketing', 'etc')",
            name="ck_expense_category",
        ),
    )


# ─── 4. CS Inquiries ───────────────────────────────────────────────────────


class CSInquiry(Base):
    __tablename__ = "cs_inquiries"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), nullable=False)
    customer_name = Column(String(255), nullable=False, default="Unknown")
    content = Column(Text, nullable=False)
    product_name = Column(String(255))
    status = Column(String(20), nullable=False, default="open")
    ai_reply = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_cs_inquiries_user_status", "user_id", "status"),
        Index("ix_cs_inquiries_user_time", "user_id", "created_at"),
        CheckConstraint(
            "status IN ('open', 'in_progress', 'waiting', 'resolved', 'closed')",
            name="ck_cs_inquiry_status",
        ),
    )


# ─── 5. Daily Logs ─────────────────────────────────────────────────────────


class DailyLog(Base):
    __tablename__ = "daily_logs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), nullable=False)
    content = Column(Text, nullable=False)
    ai_response = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_daily_logs_user_time", "user_id", "created_at"),)
