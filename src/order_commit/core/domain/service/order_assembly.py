"""Turns a priced cart into an unpersisted Order with one sub-order per vendor.

Tax is charged at the order level on ``subtotal - coupon discount``. Each
sub-order also carries a tax figure computed on its own subtotal at the same
rate, for vendor reporting. The two bases differ, so per-vendor taxes are not
expected to add up to the order tax; that difference is accepted as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Mapping

from order_commit.core.domain.model.catalog import VendorId
from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.coupon import Coupon
from order_commit.core.domain.model.money import Money, fold_money
from order_commit.core.domain.model.order import (
    CustomerId,
    GuestContact,
    Order,
    OrderId,
    OrderNumber,
    PaymentMethod,
    TrackingCode,
    VendorSubOrder,
)
from order_commit.core.domain.model.shipping import ShippingAddress
from order_commit.core.domain.service.cart_pricing import PricedCart
from order_commit.core.domain.service.coupon_evaluation import CouponOutcome


@dataclass(frozen=True)
class OrderDraft:
    order: Order
    commissions: tuple[CommissionRecord, ...]
    coupon: Coupon | None


@dataclass(frozen=True)
class AssemblyContext:
    customer_id: CustomerId | None
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    tax_rate: Decimal
    default_commission_rate: Decimal
    now: datetime
    estimated_delivery_days: int
    idempotency_scope: str | None = None
    idempotency_key: str | None = None


def assemble_order(
    cart: PricedCart,
    coupon: CouponOutcome,
    shipping: Mapping[VendorId, Money],
    ctx: AssemblyContext,
) -> OrderDraft:
    sub_orders = tuple(
        VendorSubOrder(
            vendor_id=group.vendor.vendor_id,
            vendor_name=group.vendor.store_name,
            items=group.items,
            subtotal=group.subtotal,
            shipping=shipping.get(group.vendor.vendor_id, Money.zero()),
            tax=group.subtotal.percent(ctx.tax_rate),
            discount=Money.zero(),
        )
        for group in cart.groups
    )

    subtotal = cart.subtotal
    discount = coupon.discount
    shipping_total = fold_money(sub.shipping for sub in sub_orders)
    tax_total = (subtotal - discount).percent(ctx.tax_rate)
    total = subtotal - discount + shipping_total + tax_total

    order = Order(
        order_id=OrderId.new(),
        order_number=OrderNumber.new(ctx.now),
        customer_id=ctx.customer_id,
        guest_contact=_guest_contact(ctx),
        shipping_address=ctx.shipping_address,
        payment_method=ctx.payment_method,
        items=cart.items,
        sub_orders=sub_orders,
        subtotal=subtotal,
        shipping_total=shipping_total,
        tax_total=tax_total,
        discount_total=discount,
        total=total,
        tracking_code=TrackingCode.new(),
        created_at=ctx.now,
        updated_at=ctx.now,
        estimated_delivery=ctx.now + timedelta(days=ctx.estimated_delivery_days),
        coupon_code=coupon.coupon.code if coupon.coupon is not None else None,
        coupon_discount=discount,
        idempotency_scope=ctx.idempotency_scope if ctx.idempotency_key else None,
        idempotency_key=ctx.idempotency_key,
    )

    commissions = tuple(
        CommissionRecord.for_vendor(
            order_id=order.order_id,
            vendor_id=group.vendor.vendor_id,
            vendor_name=group.vendor.store_name,
            subtotal=group.subtotal,
            commission_rate=(
                group.vendor.commission_rate
                if group.vendor.commission_rate is not None
                else ctx.default_commission_rate
            ),
        )
        for group in cart.groups
    )
    return OrderDraft(order=order, commissions=commissions, coupon=coupon.coupon)


def _guest_contact(ctx: AssemblyContext) -> GuestContact | None:
    if ctx.customer_id is not None:
        return None
    addr = ctx.shipping_address
    return GuestContact(name=addr.name, email=addr.email, phone=addr.phone)
