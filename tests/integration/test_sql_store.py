"""The checkout flow over the SQLAlchemy store on in-memory SQLite."""

from dataclasses import replace

import pytest
from returns.result import Success

from order_commit.bootstrap import build_usecases, sql_stores
from order_commit.core.domain.model.catalog import ProductId, StockState, VendorId
from order_commit.core.domain.model.commission import CommissionStatus
from order_commit.core.domain.model.errors import (
    DuplicateIdempotencyKey,
    OrderNotFound,
    StockConflict,
)
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import (
    OrderId,
    OrderNumber,
    OrderStatus,
    SubOrderStatus,
)
from order_commit.core.domain.service.order_management_service import (
    OrderManagementDeps,
    OrderManagementService,
)
from order_commit.core.ports.inbound.get_order import GetOrderQuery
from order_commit.core.ports.inbound.list_orders import ListOrdersQuery
from order_commit.core.ports.inbound.manage_order import (
    AdvanceSubOrderCommand,
    CancelOrderCommand,
)
from order_commit.core.ports.inbound.place_order import CheckoutLine


@pytest.fixture
def sql(catalog):
    return sql_stores("sqlite://", timeout=5.0, seed=catalog)


@pytest.fixture
def sql_usecases(settings, sql, sink, now):
    return build_usecases(settings, stores=sql, notifications=sink, clock=lambda: now)


def _stock(stores, product_id):
    product = stores.catalog.get_product(ProductId(product_id)).unwrap()
    return product.stock_quantity, product.stock_state


def _load(stores, receipt):
    return stores.orders.get(receipt.order_number).unwrap()


class TestCatalogRoundTrip:
    def test_vendor_zones_survive_storage(self, sql):
        vendor = sql.catalog.get_vendor(VendorId("v-alpha")).unwrap()

        assert vendor.commission_rate == 10
        zone = vendor.shipping_zones[0]
        assert zone.countries == ("IN",)
        assert [r.name for r in zone.rates] == ["Standard", "Express"]
        assert zone.rates[0].free_shipping_threshold == Money.of(1000)

    def test_variant_prices_survive_storage(self, sql):
        shirt = sql.catalog.get_product(ProductId("p-shirt")).unwrap()
        assert shirt.variant_prices["color=red;size=m"] == Money.of(350)

    def test_coupon_lookup_is_case_insensitive(self, sql):
        coupon = sql.coupons.find_active_coupon(" save20 ").unwrap()
        assert coupon.code == "SAVE20"
        assert coupon.max_discount == Money.of(150)


class TestCheckout:
    def test_commit_writes_everything(self, sql_usecases, sql, now, make_command):
        receipt = sql_usecases.place_order.place_order(make_command(coupon_code="SAVE20")).unwrap()

        assert receipt.total == Money.of("1348.00")
        order = _load(sql, receipt)
        assert order.created_at == now
        assert order.discount_total == Money.of(150)
        assert [s.vendor_id.value for s in order.sub_orders] == ["v-alpha", "v-beta"]
        assert [i.quantity for i in order.items] == [2, 1]
        assert _stock(sql, "p-widget") == (18, StockState.IN_STOCK)
        assert _stock(sql, "p-gadget") == (4, StockState.LOW_STOCK)
        assert sql.coupons.find_active_coupon("SAVE20").unwrap().used_count == 1

        commissions = sql.commissions.for_order(order.order_id).unwrap()
        assert [(c.commission, c.vendor_earnings) for c in commissions] == [
            (Money.of(100), Money.of(900)),
            (Money.of(25), Money.of(225)),
        ]

    def test_conflict_rolls_back_every_write(self, sql_usecases, sql, make_command):
        command = make_command(
            lines=(
                CheckoutLine(product_id="p-widget", quantity=2),
                CheckoutLine(product_id="p-gadget", quantity=3),
                CheckoutLine(product_id="p-gadget", quantity=3),
            ),
            coupon_code="SAVE20",
        )

        err = sql_usecases.place_order.place_order(command).failure()

        assert isinstance(err, StockConflict)
        assert _stock(sql, "p-widget") == (20, StockState.IN_STOCK)
        assert _stock(sql, "p-gadget") == (5, StockState.LOW_STOCK)
        assert sql.coupons.find_active_coupon("SAVE20").unwrap().used_count == 0
        assert sql_usecases.list_orders.list_orders(ListOrdersQuery()).unwrap() == ()

    def test_last_unit_marks_product_out_of_stock(self, sql_usecases, sql, make_command):
        command = make_command(lines=(CheckoutLine(product_id="p-last", quantity=3),))
        assert isinstance(sql_usecases.place_order.place_order(command), Success)
        assert _stock(sql, "p-last") == (0, StockState.OUT_OF_STOCK)

    def test_idempotent_replay(self, sql_usecases, sql, make_command):
        first = sql_usecases.place_order.place_order(make_command(idempotency_key="k-1")).unwrap()
        second = sql_usecases.place_order.place_order(make_command(idempotency_key="k-1")).unwrap()

        assert second.replay is True
        assert second.order_number == first.order_number
        assert _stock(sql, "p-widget") == (18, StockState.IN_STOCK)

    def test_unique_constraint_rejects_second_key_holder(self, sql_usecases, sql, make_command):
        receipt = sql_usecases.place_order.place_order(make_command(idempotency_key="k-1")).unwrap()
        twin = replace(
            _load(sql, receipt), order_id=OrderId.new(), order_number=OrderNumber("ORD-twin")
        )

        err = sql.uow.run(lambda tx: tx.insert_order(twin)).failure()

        assert isinstance(err, DuplicateIdempotencyKey)
        assert isinstance(sql.orders.get(OrderNumber("ORD-twin")).failure(), OrderNotFound)

    def test_orders_without_keys_do_not_collide(self, sql_usecases, make_command):
        first = sql_usecases.place_order.place_order(make_command()).unwrap()
        second = sql_usecases.place_order.place_order(make_command()).unwrap()
        assert first.order_number != second.order_number


class TestManagement:
    def test_advance_and_cancel(self, sql_usecases, sql, sink, later, make_command):
        number = sql_usecases.place_order.place_order(make_command()).unwrap().order_number.value
        manager = OrderManagementService(
            OrderManagementDeps(uow=sql.uow, notifications=sink, clock=lambda: later)
        )

        advanced = manager.advance_sub_order_status(
            AdvanceSubOrderCommand(order_number=number, vendor_id="v-beta", status="processing")
        ).unwrap()
        assert advanced.status is OrderStatus.PROCESSING

        cancelled = manager.cancel_order(
            CancelOrderCommand(order_number=number, reason="duplicate")
        ).unwrap()
        assert cancelled.status is OrderStatus.CANCELLED

        stored = sql_usecases.get_order.get_order(GetOrderQuery(number)).unwrap()
        assert stored.status is OrderStatus.CANCELLED
        assert stored.cancellation_reason == "duplicate"
        assert stored.cancelled_at == later
        assert {s.status for s in stored.sub_orders} == {SubOrderStatus.CANCELLED}
        assert _stock(sql, "p-widget") == (20, StockState.IN_STOCK)

        commissions = sql.commissions.for_order(stored.order_id).unwrap()
        assert {c.status for c in commissions} == {CommissionStatus.CANCELLED}

    def test_listing_sorts_by_total(self, sql_usecases, make_command):
        small = sql_usecases.place_order.place_order(
            make_command(lines=(CheckoutLine(product_id="p-widget", quantity=1),))
        ).unwrap()
        large = sql_usecases.place_order.place_order(make_command()).unwrap()

        page = sql_usecases.list_orders.list_orders(
            ListOrdersQuery(sort_by="total", sort_dir="desc")
        ).unwrap()

        assert [s.order_number for s in page] == [large.order_number, small.order_number]
