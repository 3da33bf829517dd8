"""Row <-> domain conversion for the SQL store.

SQLite hands datetimes back without a zone even for timezone-aware columns;
every datetime read here is assumed to be UTC.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from order_commit.adapters.outbound.sql.tables import (
    CommissionRow,
    CouponRow,
    LineItemRow,
    OrderRow,
    ProductRow,
    ShippingRateRow,
    ShippingZoneRow,
    SubOrderRow,
    VendorRow,
)
from order_commit.core.domain.model.catalog import (
    Product,
    ProductId,
    StockState,
    Vendor,
    VendorId,
)
from order_commit.core.domain.model.commission import CommissionRecord, CommissionStatus
from order_commit.core.domain.model.coupon import Coupon, CouponType
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import (
    CustomerId,
    GuestContact,
    LineItem,
    Order,
    OrderId,
    OrderNumber,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    SubOrderStatus,
    TrackingCode,
    VendorSubOrder,
)
from order_commit.core.domain.model.shipping import (
    ShippingAddress,
    ShippingRate,
    ShippingZone,
)
from order_commit.core.domain.model.variant import VariantSelection


def utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _money(amount: Decimal | None, currency: str) -> Money:
    return Money.of(amount if amount is not None else 0, currency)


# ---- catalog ---------------------------------------------------------------


def vendor_from_row(row: VendorRow, currency: str) -> Vendor:
    return Vendor(
        vendor_id=VendorId(row.id),
        store_name=row.store_name,
        commission_rate=row.commission_rate,
        shipping_enabled=row.shipping_enabled,
        default_shipping_rate=_money(row.default_shipping_rate, currency),
        free_shipping_threshold=_money(row.free_shipping_threshold, currency),
        shipping_zones=tuple(
            ShippingZone(
                zone_id=zone.id,
                name=zone.name,
                countries=tuple(zone.countries or ()),
                rates=tuple(
                    ShippingRate(
                        name=rate.name,
                        rate=_money(rate.rate, currency),
                        free_shipping_threshold=_money(
                            rate.free_shipping_threshold, currency
                        ),
                    )
                    for rate in zone.rates
                ),
            )
            for zone in row.zones
        ),
    )


def vendor_to_row(vendor: Vendor) -> VendorRow:
    return VendorRow(
        id=vendor.vendor_id.value,
        store_name=vendor.store_name,
        commission_rate=vendor.commission_rate,
        shipping_enabled=vendor.shipping_enabled,
        default_shipping_rate=vendor.default_shipping_rate.amount,
        free_shipping_threshold=vendor.free_shipping_threshold.amount,
        zones=[
            ShippingZoneRow(
                id=zone.zone_id,
                name=zone.name,
                countries=list(zone.countries),
                position=zpos,
                rates=[
                    ShippingRateRow(
                        name=rate.name,
                        rate=rate.rate.amount,
                        free_shipping_threshold=rate.free_shipping_threshold.amount,
                        position=rpos,
                    )
                    for rpos, rate in enumerate(zone.rates)
                ],
            )
            for zpos, zone in enumerate(vendor.shipping_zones)
        ],
    )


def product_from_row(row: ProductRow) -> Product:
    return Product(
        product_id=ProductId(row.id),
        vendor_id=VendorId(row.vendor_id),
        name=row.name,
        price=_money(row.price, row.currency),
        stock_quantity=row.stock_quantity,
        stock_state=StockState(row.stock_state),
        low_stock_threshold=row.low_stock_threshold,
        image=row.image,
        variant_prices={
            key: Money.of(value, row.currency)
            for key, value in (row.variant_prices or {}).items()
        },
    )


def product_to_row(product: Product) -> ProductRow:
    return ProductRow(
        id=product.product_id.value,
        vendor_id=product.vendor_id.value,
        name=product.name,
        price=product.price.amount,
        currency=product.price.currency,
        stock_quantity=product.stock_quantity,
        stock_state=product.stock_state.value,
        low_stock_threshold=product.low_stock_threshold,
        image=product.image,
        variant_prices={k: str(v.amount) for k, v in product.variant_prices.items()},
    )


def coupon_from_row(row: CouponRow, currency: str) -> Coupon:
    return Coupon(
        coupon_id=row.id,
        code=row.code,
        type=CouponType(row.type),
        value=Decimal(row.value),
        min_order_value=_money(row.min_order_value, currency),
        max_discount=(
            _money(row.max_discount, currency) if row.max_discount is not None else None
        ),
        usage_limit=row.usage_limit,
        used_count=row.used_count,
        is_active=row.is_active,
        starts_at=utc(row.starts_at),
        expires_at=utc(row.expires_at),
    )


def coupon_to_row(coupon: Coupon) -> CouponRow:
    return CouponRow(
        id=coupon.coupon_id,
        code=coupon.code,
        type=coupon.type.value,
        value=coupon.value,
        min_order_value=coupon.min_order_value.amount,
        max_discount=coupon.max_discount.amount if coupon.max_discount else None,
        usage_limit=coupon.usage_limit,
        used_count=coupon.used_count,
        is_active=coupon.is_active,
        starts_at=coupon.starts_at,
        expires_at=coupon.expires_at,
    )


# ---- orders ----------------------------------------------------------------


def order_to_row(order: Order) -> OrderRow:
    currency = order.total.currency
    guest = order.guest_contact
    return OrderRow(
        id=str(order.order_id.value),
        order_number=order.order_number.value,
        customer_id=order.customer_id.value if order.customer_id else None,
        guest_name=guest.name if guest else None,
        guest_email=guest.email if guest else None,
        guest_phone=guest.phone if guest else None,
        shipping_address=asdict(order.shipping_address),
        payment_method=order.payment_method.value,
        payment_status=order.payment_status.value,
        status=order.status.value,
        currency=currency,
        subtotal=order.subtotal.amount,
        shipping_total=order.shipping_total.amount,
        tax_total=order.tax_total.amount,
        discount_total=order.discount_total.amount,
        total=order.total.amount,
        tracking_code=order.tracking_code.value,
        coupon_code=order.coupon_code,
        coupon_discount=order.coupon_discount.amount,
        idempotency_scope=order.idempotency_scope,
        idempotency_key=order.idempotency_key,
        created_at=order.created_at,
        updated_at=order.updated_at,
        estimated_delivery=order.estimated_delivery,
        cancelled_at=order.cancelled_at,
        cancellation_reason=order.cancellation_reason,
        delivered_at=order.delivered_at,
        archived_at=order.archived_at,
        sub_orders=[
            SubOrderRow(
                vendor_id=sub.vendor_id.value,
                vendor_name=sub.vendor_name,
                subtotal=sub.subtotal.amount,
                shipping=sub.shipping.amount,
                tax=sub.tax.amount,
                discount=sub.discount.amount,
                status=sub.status.value,
                position=pos,
            )
            for pos, sub in enumerate(order.sub_orders)
        ],
        items=[_line_to_row(item, pos) for pos, item in enumerate(order.items)],
    )


def apply_order_changes(row: OrderRow, order: Order) -> None:
    """Copy the mutable parts of an order onto its loaded row."""
    row.status = order.status.value
    row.payment_status = order.payment_status.value
    row.updated_at = order.updated_at
    row.cancelled_at = order.cancelled_at
    row.cancellation_reason = order.cancellation_reason
    row.delivered_at = order.delivered_at
    row.archived_at = order.archived_at
    statuses = {sub.vendor_id.value: sub.status.value for sub in order.sub_orders}
    for sub_row in row.sub_orders:
        sub_row.status = statuses.get(sub_row.vendor_id, sub_row.status)


def order_from_row(row: OrderRow) -> Order:
    currency = row.currency
    items = tuple(_line_from_row(item, currency) for item in row.items)
    guest = (
        GuestContact(
            name=row.guest_name or "",
            email=row.guest_email or "",
            phone=row.guest_phone or "",
        )
        if row.guest_name is not None
        or row.guest_email is not None
        or row.guest_phone is not None
        else None
    )
    sub_orders = tuple(
        VendorSubOrder(
            vendor_id=VendorId(sub.vendor_id),
            vendor_name=sub.vendor_name,
            items=tuple(i for i in items if i.vendor_id.value == sub.vendor_id),
            subtotal=_money(sub.subtotal, currency),
            shipping=_money(sub.shipping, currency),
            tax=_money(sub.tax, currency),
            discount=_money(sub.discount, currency),
            status=SubOrderStatus(sub.status),
        )
        for sub in row.sub_orders
    )
    return Order(
        order_id=OrderId(UUID(row.id)),
        order_number=OrderNumber(row.order_number),
        customer_id=CustomerId(row.customer_id) if row.customer_id else None,
        guest_contact=guest,
        shipping_address=ShippingAddress(**row.shipping_address),
        payment_method=PaymentMethod(row.payment_method),
        items=items,
        sub_orders=sub_orders,
        subtotal=_money(row.subtotal, currency),
        shipping_total=_money(row.shipping_total, currency),
        tax_total=_money(row.tax_total, currency),
        discount_total=_money(row.discount_total, currency),
        total=_money(row.total, currency),
        tracking_code=TrackingCode(row.tracking_code),
        created_at=utc(row.created_at),
        updated_at=utc(row.updated_at),
        estimated_delivery=utc(row.estimated_delivery),
        coupon_code=row.coupon_code,
        coupon_discount=_money(row.coupon_discount, currency),
        payment_status=PaymentStatus(row.payment_status),
        status=OrderStatus(row.status),
        idempotency_scope=row.idempotency_scope,
        idempotency_key=row.idempotency_key,
        cancelled_at=utc(row.cancelled_at),
        cancellation_reason=row.cancellation_reason,
        delivered_at=utc(row.delivered_at),
        archived_at=utc(row.archived_at),
    )


def _line_to_row(item: LineItem, position: int) -> LineItemRow:
    return LineItemRow(
        product_id=item.product_id.value,
        vendor_id=item.vendor_id.value,
        name=item.name,
        image=item.image,
        unit_price=item.unit_price.amount,
        quantity=item.quantity,
        variant=[list(pair) for pair in item.variant.axes],
        position=position,
    )


def _line_from_row(row: LineItemRow, currency: str) -> LineItem:
    return LineItem(
        product_id=ProductId(row.product_id),
        vendor_id=VendorId(row.vendor_id),
        name=row.name,
        image=row.image,
        unit_price=_money(row.unit_price, currency),
        quantity=row.quantity,
        variant=VariantSelection(tuple((axis, value) for axis, value in row.variant or ())),
    )


# ---- commissions -----------------------------------------------------------


def commission_to_row(record: CommissionRecord) -> CommissionRow:
    return CommissionRow(
        order_id=str(record.order_id.value),
        vendor_id=record.vendor_id.value,
        vendor_name=record.vendor_name,
        subtotal=record.subtotal.amount,
        commission_rate=record.commission_rate,
        commission=record.commission.amount,
        vendor_earnings=record.vendor_earnings.amount,
        status=record.status.value,
    )


def commission_from_row(row: CommissionRow, currency: str) -> CommissionRecord:
    return CommissionRecord(
        order_id=OrderId(UUID(row.order_id)),
        vendor_id=VendorId(row.vendor_id),
        vendor_name=row.vendor_name,
        subtotal=_money(row.subtotal, currency),
        commission_rate=Decimal(row.commission_rate),
        commission=_money(row.commission, currency),
        vendor_earnings=_money(row.vendor_earnings, currency),
        status=CommissionStatus(row.status),
    )
