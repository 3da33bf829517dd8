from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from order_commit.adapters.outbound.demo_data import CatalogSeed
from order_commit.adapters.outbound.logging_notifications import (
    LoggingNotificationSink,
)
from order_commit.bootstrap import (
    build_usecases,
    in_memory_stores,
    seeded_database,
)
from order_commit.config import Settings
from order_commit.core.domain.model.catalog import (
    Product,
    ProductId,
    StockState,
    Vendor,
    VendorId,
)
from order_commit.core.domain.model.coupon import Coupon, CouponType
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.shipping import (
    ShippingRate,
    ShippingZone,
)
from order_commit.core.domain.service.order_management_service import (
    OrderManagementDeps,
    OrderManagementService,
)
from order_commit.core.ports.inbound.place_order import (
    CheckoutLine,
    PlaceOrderCommand,
    ShippingAddressInput,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
LATER = NOW + timedelta(hours=6)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def catalog() -> CatalogSeed:
    """Two vendors: Alpha ships by zone, Beta has no shipping setup at all."""
    alpha = Vendor(
        vendor_id=VendorId("v-alpha"),
        store_name="Alpha Store",
        commission_rate=Decimal("10"),
        shipping_zones=(
            ShippingZone(
                zone_id="z-alpha-in",
                name="Domestic",
                countries=("IN",),
                rates=(
                    ShippingRate("Standard", Money.of(40), Money.of(1000)),
                    ShippingRate("Express", Money.of(90)),
                ),
            ),
        ),
    )
    beta = Vendor(vendor_id=VendorId("v-beta"), store_name="Beta Store")

    products = (
        Product(
            product_id=ProductId("p-widget"),
            vendor_id=alpha.vendor_id,
            name="Widget",
            price=Money.of(500),
            stock_quantity=20,
        ),
        Product(
            product_id=ProductId("p-shirt"),
            vendor_id=alpha.vendor_id,
            name="Shirt",
            price=Money.of(300),
            stock_quantity=50,
            variant_prices={
                "color=red;size=m": Money.of(350),
                "l|blue": Money.of(320),
            },
        ),
        Product(
            product_id=ProductId("p-gone"),
            vendor_id=alpha.vendor_id,
            name="Discontinued Lamp",
            price=Money.of(100),
            stock_quantity=0,
            stock_state=StockState.OUT_OF_STOCK,
        ),
        Product(
            product_id=ProductId("p-gadget"),
            vendor_id=beta.vendor_id,
            name="Gadget",
            price=Money.of(250),
            stock_quantity=5,
            stock_state=StockState.LOW_STOCK,
        ),
        Product(
            product_id=ProductId("p-last"),
            vendor_id=beta.vendor_id,
            name="Last Few",
            price=Money.of(1000),
            stock_quantity=3,
            stock_state=StockState.LOW_STOCK,
        ),
    )

    coupons = (
        Coupon(
            coupon_id="c-save20",
            code="SAVE20",
            type=CouponType.PERCENTAGE,
            value=Decimal("20"),
            max_discount=Money.of(150),
        ),
        Coupon(
            coupon_id="c-flat100",
            code="FLAT100",
            type=CouponType.FIXED,
            value=Decimal("100"),
            min_order_value=Money.of(500),
        ),
        Coupon(
            coupon_id="c-shipfree",
            code="SHIPFREE",
            type=CouponType.FREESHIP,
            value=Decimal("0"),
        ),
        Coupon(
            coupon_id="c-expired",
            code="EXPIRED",
            type=CouponType.FIXED,
            value=Decimal("50"),
            expires_at=NOW - timedelta(days=1),
        ),
        Coupon(
            coupon_id="c-limited",
            code="LIMITED",
            type=CouponType.FIXED,
            value=Decimal("50"),
            usage_limit=1,
            used_count=1,
        ),
        Coupon(
            coupon_id="c-big-spender",
            code="BIGSPENDER",
            type=CouponType.FIXED,
            value=Decimal("500"),
            min_order_value=Money.of(10000),
        ),
    )
    return CatalogSeed(vendors=(alpha, beta), products=products, coupons=coupons)


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test", log_level="WARNING", seed_demo_data=False)


@pytest.fixture
def db(catalog):
    return seeded_database(catalog)


@pytest.fixture
def stores(db):
    return in_memory_stores(db, timeout=2.0)


@pytest.fixture
def sink():
    return LoggingNotificationSink(record=True)


@pytest.fixture
def usecases(settings, stores, sink):
    return build_usecases(settings, stores=stores, notifications=sink, clock=lambda: NOW)


@pytest.fixture
def make_command():
    """Builds a checkout for 2 widgets (Alpha) and 1 gadget (Beta) shipped to India."""

    def _make(**overrides) -> PlaceOrderCommand:
        fields = dict(
            lines=(
                CheckoutLine(product_id="p-widget", quantity=2),
                CheckoutLine(product_id="p-gadget", quantity=1),
            ),
            shipping_address=ShippingAddressInput(
                name="Asha Rao",
                email="Asha@Example.com",
                phone="+91 98765-43210",
                address="12 MG Road",
                city="Bengaluru",
                state="KA",
                zip_code="560001",
                country="IN",
            ),
            payment_method="card",
        )
        fields.update(overrides)
        return PlaceOrderCommand(**fields)

    return _make


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def later() -> datetime:
    return LATER


@pytest.fixture
def manager_later(stores, sink):
    """Order management whose clock reads six hours after checkout."""
    return OrderManagementService(
        OrderManagementDeps(uow=stores.uow, notifications=sink, clock=lambda: LATER)
    )
