"""Catalog seeds, and the small two-vendor catalog loaded as demo data."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from order_commit.core.domain.model.catalog import (
    Product,
    ProductId,
    StockState,
    Vendor,
    VendorId,
)
from order_commit.core.domain.model.coupon import Coupon, CouponType
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.shipping import ShippingRate, ShippingZone


@dataclass(frozen=True)
class CatalogSeed:
    vendors: tuple[Vendor, ...]
    products: tuple[Product, ...]
    coupons: tuple[Coupon, ...]


def demo_catalog() -> CatalogSeed:
    threads = Vendor(
        vendor_id=VendorId("v-threads"),
        store_name="Threads & Co",
        commission_rate=Decimal("12"),
        shipping_zones=(
            ShippingZone(
                zone_id="z-threads-in",
                name="Domestic",
                countries=("IN", "India"),
                rates=(
                    ShippingRate("Standard", Money.of(40), Money.of(999)),
                    ShippingRate("Express", Money.of(90)),
                ),
            ),
            ShippingZone(
                zone_id="z-threads-world",
                name="Rest of world",
                rates=(ShippingRate("Standard international", Money.of(600)),),
            ),
        ),
    )
    kiln = Vendor(
        vendor_id=VendorId("v-kiln"),
        store_name="Kiln Ceramics",
        default_shipping_rate=Money.of(60),
        free_shipping_threshold=Money.of(2000),
    )

    products = (
        Product(
            product_id=ProductId("p-tee"),
            vendor_id=threads.vendor_id,
            name="Organic Cotton Tee",
            price=Money.of(499),
            stock_quantity=40,
            variant_prices={
                "color=black;size=xl": Money.of(549),
                "l|black": Money.of(529),
            },
        ),
        Product(
            product_id=ProductId("p-scarf"),
            vendor_id=threads.vendor_id,
            name="Handloom Scarf",
            price=Money.of(1200),
            stock_quantity=6,
            stock_state=StockState.LOW_STOCK,
        ),
        Product(
            product_id=ProductId("p-mug"),
            vendor_id=kiln.vendor_id,
            name="Stoneware Mug",
            price=Money.of(350),
            stock_quantity=25,
        ),
    )

    coupons = (
        Coupon(
            coupon_id="c-welcome",
            code="WELCOME20",
            type=CouponType.PERCENTAGE,
            value=Decimal("20"),
            max_discount=Money.of(150),
        ),
        Coupon(
            coupon_id="c-flat",
            code="FLAT100",
            type=CouponType.FIXED,
            value=Decimal("100"),
            min_order_value=Money.of(500),
        ),
        Coupon(
            coupon_id="c-ship",
            code="FREESHIP",
            type=CouponType.FREESHIP,
            value=Decimal("0"),
            usage_limit=100,
        ),
    )
    return CatalogSeed(vendors=(threads, kiln), products=products, coupons=coupons)
