from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Tuple
from uuid import UUID, uuid4

from order_commit.core.domain.model.catalog import ProductId, VendorId
from order_commit.core.domain.model.money import Money, fold_money
from order_commit.core.domain.model.shipping import ShippingAddress
from order_commit.core.domain.model.variant import VariantSelection

_BASE36 = string.digits + string.ascii_uppercase


@dataclass(frozen=True)
class OrderId:
    value: UUID

    @staticmethod
    def new() -> "OrderId":
        return OrderId(uuid4())


@dataclass(frozen=True)
class OrderNumber:
    value: str

    @staticmethod
    def new(at: datetime | None = None) -> "OrderNumber":
        ts = int((at or now_utc()).timestamp() * 1000)
        suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
        return OrderNumber(f"ORD-{ts}-{suffix}")


@dataclass(frozen=True)
class TrackingCode:
    value: str

    @staticmethod
    def new() -> "TrackingCode":
        return TrackingCode("TRK-" + "".join(secrets.choice(_BASE36) for _ in range(10)))


@dataclass(frozen=True)
class CustomerId:
    value: str


class PaymentMethod(str, Enum):
    CARD = "card"
    BANK = "bank"
    WALLET = "wallet"
    UPI = "upi"
    COD = "cod"

    @staticmethod
    def parse(raw: str) -> "PaymentMethod":
        value = raw.strip().lower()
        if value == "cash":
            return PaymentMethod.COD
        return PaymentMethod(value)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class SubOrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class GuestContact:
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class LineItem:
    product_id: ProductId
    vendor_id: VendorId
    name: str
    image: str
    unit_price: Money
    quantity: int
    variant: VariantSelection = VariantSelection()

    def subtotal(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class VendorSubOrder:
    vendor_id: VendorId
    vendor_name: str
    items: Tuple[LineItem, ...]
    subtotal: Money
    shipping: Money
    tax: Money
    discount: Money
    status: SubOrderStatus = SubOrderStatus.PENDING


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    order_number: OrderNumber
    customer_id: CustomerId | None
    guest_contact: GuestContact | None
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    items: Tuple[LineItem, ...]
    sub_orders: Tuple[VendorSubOrder, ...]
    subtotal: Money
    shipping_total: Money
    tax_total: Money
    discount_total: Money
    total: Money
    tracking_code: TrackingCode
    created_at: datetime
    updated_at: datetime
    estimated_delivery: datetime | None = None
    coupon_code: str | None = None
    coupon_discount: Money = Money.zero()
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: OrderStatus = OrderStatus.PENDING
    idempotency_scope: str | None = None
    idempotency_key: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    delivered_at: datetime | None = None
    archived_at: datetime | None = None

    def sub_order_for(self, vendor_id: VendorId) -> VendorSubOrder | None:
        for sub in self.sub_orders:
            if sub.vendor_id == vendor_id:
                return sub
        return None

    def with_sub_order(self, updated: VendorSubOrder) -> "Order":
        subs = tuple(
            updated if sub.vendor_id == updated.vendor_id else sub
            for sub in self.sub_orders
        )
        return replace(self, sub_orders=subs)

    def sub_order_subtotal(self) -> Money:
        return fold_money(
            (sub.subtotal for sub in self.sub_orders), currency=self.subtotal.currency
        )


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
