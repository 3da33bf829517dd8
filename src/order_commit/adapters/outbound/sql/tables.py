from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, List

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

IDEMPOTENCY_CONSTRAINT = "uq_orders_idempotency"


def _amount() -> Any:
    return Numeric(12, 2)


class Base(DeclarativeBase):
    pass


# ---- catalog ---------------------------------------------------------------


class VendorRow(Base):
    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    store_name: Mapped[str] = mapped_column(String(200), nullable=False)
    commission_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    shipping_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    default_shipping_rate: Mapped[Decimal] = mapped_column(_amount(), nullable=False, default=0)
    free_shipping_threshold: Mapped[Decimal] = mapped_column(
        _amount(), nullable=False, default=0
    )

    zones: Mapped[List["ShippingZoneRow"]] = relationship(
        order_by="ShippingZoneRow.position", cascade="all, delete-orphan"
    )


class ShippingZoneRow(Base):
    __tablename__ = "shipping_zones"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # empty list means the zone ships everywhere
    countries: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    rates: Mapped[List["ShippingRateRow"]] = relationship(
        order_by="ShippingRateRow.position", cascade="all, delete-orphan"
    )


class ShippingRateRow(Base):
    __tablename__ = "shipping_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    zone_id: Mapped[str] = mapped_column(
        ForeignKey("shipping_zones.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    rate: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    free_shipping_threshold: Mapped[Decimal] = mapped_column(
        _amount(), nullable=False, default=0
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ProductRow(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    price: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_state: Mapped[str] = mapped_column(String(20), nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # variant key -> decimal string
    variant_prices: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)


class CouponRow(Base):
    __tablename__ = "coupons"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    min_order_value: Mapped[Decimal] = mapped_column(_amount(), nullable=False, default=0)
    max_discount: Mapped[Decimal | None] = mapped_column(_amount(), nullable=True)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    starts_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---- orders ----------------------------------------------------------------


class OrderRow(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint(
            "idempotency_scope", "idempotency_key", name=IDEMPOTENCY_CONSTRAINT
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    order_number: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    guest_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    guest_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    guest_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    shipping_address: Mapped[dict] = mapped_column(JSON, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    shipping_total: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    tax_total: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    discount_total: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    total: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    tracking_code: Mapped[str] = mapped_column(String(20), nullable=False)
    coupon_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    coupon_discount: Mapped[Decimal] = mapped_column(_amount(), nullable=False, default=0)
    idempotency_scope: Mapped[str | None] = mapped_column(String(255), nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    estimated_delivery: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    sub_orders: Mapped[List["SubOrderRow"]] = relationship(
        order_by="SubOrderRow.position", cascade="all, delete-orphan"
    )
    items: Mapped[List["LineItemRow"]] = relationship(
        order_by="LineItemRow.position", cascade="all, delete-orphan"
    )


class SubOrderRow(Base):
    __tablename__ = "vendor_sub_orders"
    __table_args__ = (UniqueConstraint("order_id", "vendor_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    vendor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    vendor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    shipping: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    tax: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    discount: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class LineItemRow(Base):
    __tablename__ = "order_line_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    vendor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    unit_price: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # [[axis, value], ...] in canonical order
    variant: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class CommissionRow(Base):
    __tablename__ = "commissions"
    __table_args__ = (UniqueConstraint("order_id", "vendor_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    vendor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    vendor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    commission: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    vendor_earnings: Mapped[Decimal] = mapped_column(_amount(), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
