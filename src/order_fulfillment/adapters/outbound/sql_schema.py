from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("price", Numeric(12, 2), nullable=False),
    Column("category", Text, nullable=False),
    Column("in_stock", Integer, nullable=False, default=0),
    CheckConstraint("in_stock >= 0", name="ck_products_in_stock_non_negative"),
    CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
)

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("client_name", Text, nullable=False),
    Column("client_email", Text, nullable=False),
    Column("client_phone", Text, nullable=True),
    Column("total_amount", Numeric(14, 2), nullable=False),
    Column("status", String(32), nullable=False, default="pending"),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    # unit price captured at purchase time
    Column("price", Numeric(12, 2), nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
)
