"""
Database Models - Marketplace Schema

Normalized tables for the simulated marketplace. The report engine only reads
them; ingestion owns their contents.

Dimension-like tables:
- Customer, Product, Warehouse, Vendor

Fact-like tables:
- Order, OrderItem: sales, the basis of all revenue math
- Inventory: current on-hand stock per product and warehouse
- Shipment: dispatch and delivery dates per order
"""

from datetime import date
from enum import Enum
from typing import List, Optional

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    """Order statuses known to the marketplace; stored as plain strings"""
    PENDING = "Pending"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"


# Money columns come back as float, matching the snapshot schema
Money = Numeric(10, 2, asdecimal=False)


# =============================================================================
# DIMENSION TABLES
# =============================================================================

class Customer(Base):
    """Registered marketplace customer"""
    __tablename__ = "customers"

    customer_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_name: Mapped[Optional[str]] = mapped_column(String(100))
    email: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(15))
    city: Mapped[Optional[str]] = mapped_column(String(50))
    registration_date: Mapped[Optional[date]] = mapped_column(Date)

    orders: Mapped[List["Order"]] = relationship(back_populates="customer")


class Product(Base):
    """Sellable SKU"""
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(150))
    category: Mapped[Optional[str]] = mapped_column(String(50))
    brand: Mapped[Optional[str]] = mapped_column(String(50))
    cost_price: Mapped[Optional[float]] = mapped_column(Money)
    selling_price: Mapped[Optional[float]] = mapped_column(Money)

    __table_args__ = (
        Index("ix_products_category", "category"),
    )


class Warehouse(Base):
    """Fulfillment warehouse"""
    __tablename__ = "warehouses"

    warehouse_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    warehouse_name: Mapped[Optional[str]] = mapped_column(String(100))
    city: Mapped[Optional[str]] = mapped_column(String(50))
    capacity: Mapped[Optional[int]] = mapped_column(Integer)


class Vendor(Base):
    """Product supplier. Kept for forward compatibility; no report joins it."""
    __tablename__ = "vendors"

    vendor_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    vendor_name: Mapped[Optional[str]] = mapped_column(String(100))


# =============================================================================
# FACT TABLES
# =============================================================================

class Inventory(Base):
    """On-hand quantity of a product in a warehouse"""
    __tablename__ = "inventory"

    inventory_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.product_id"))
    warehouse_id: Mapped[int] = mapped_column(ForeignKey("warehouses.warehouse_id"))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    last_updated: Mapped[Optional[date]] = mapped_column(Date)

    __table_args__ = (
        Index("ix_inventory_product", "product_id"),
    )


class Order(Base):
    """Customer order header"""
    __tablename__ = "orders"

    order_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.customer_id"))
    order_date: Mapped[Optional[date]] = mapped_column(Date)
    order_status: Mapped[Optional[str]] = mapped_column(String(20))
    payment_mode: Mapped[Optional[str]] = mapped_column(String(20))

    customer: Mapped["Customer"] = relationship(back_populates="orders")
    items: Mapped[List["OrderItem"]] = relationship(back_populates="order")

    __table_args__ = (
        Index("ix_orders_status_date", "order_status", "order_date"),
    )


class OrderItem(Base):
    """Order line; revenue is quantity * unit_price"""
    __tablename__ = "order_items"

    order_item_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.order_id"))
    product_id: Mapped[int] = mapped_column(ForeignKey("products.product_id"))
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[float] = mapped_column(Money)

    order: Mapped["Order"] = relationship(back_populates="items")

    __table_args__ = (
        Index("ix_order_items_order", "order_id"),
        Index("ix_order_items_product", "product_id"),
    )


class Shipment(Base):
    """Dispatch of an order from a warehouse"""
    __tablename__ = "shipments"

    shipment_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.order_id"))
    warehouse_id: Mapped[int] = mapped_column(ForeignKey("warehouses.warehouse_id"))
    dispatch_date: Mapped[Optional[date]] = mapped_column(Date)
    delivery_date: Mapped[Optional[date]] = mapped_column(Date)
    delivery_status: Mapped[Optional[str]] = mapped_column(String(20))


# Snapshot relation name -> model
MODELS = {
    "customers": Customer,
    "products": Product,
    "warehouses": Warehouse,
    "inventory": Inventory,
    "orders": Order,
    "order_items": OrderItem,
    "shipments": Shipment,
    "vendors": Vendor,
}
