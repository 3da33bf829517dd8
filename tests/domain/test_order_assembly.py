"""Tests for turning a priced cart into an order draft with commissions."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from order_commit.core.domain.model.catalog import ProductId, Vendor, VendorId
from order_commit.core.domain.model.coupon import Coupon, CouponType
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import (
    CustomerId,
    LineItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    SubOrderStatus,
)
from order_commit.core.domain.model.shipping import ShippingAddress
from order_commit.core.domain.service.cart_pricing import PricedCart, VendorGroup
from order_commit.core.domain.service.coupon_evaluation import NO_COUPON, CouponOutcome
from order_commit.core.domain.service.order_assembly import (
    AssemblyContext,
    assemble_order,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
ALPHA = Vendor(vendor_id=VendorId("v-alpha"), store_name="Alpha", commission_rate=Decimal("10"))
BETA = Vendor(vendor_id=VendorId("v-beta"), store_name="Beta")
ADDRESS = ShippingAddress(name="Asha Rao", email="asha@example.com", phone="98765", country="IN")


def _item(vendor: Vendor, product: str, price, qty: int) -> LineItem:
    return LineItem(
        product_id=ProductId(product),
        vendor_id=vendor.vendor_id,
        name=product,
        image="",
        unit_price=Money.of(price),
        quantity=qty,
    )


def _cart() -> PricedCart:
    alpha_items = (_item(ALPHA, "p-widget", 500, 2),)
    beta_items = (_item(BETA, "p-gadget", 250, 1),)
    return PricedCart(
        items=alpha_items + beta_items,
        groups=(VendorGroup(ALPHA, alpha_items), VendorGroup(BETA, beta_items)),
    )


def _ctx(**overrides) -> AssemblyContext:
    fields = dict(
        customer_id=None,
        shipping_address=ADDRESS,
        payment_method=PaymentMethod.CARD,
        tax_rate=Decimal("18"),
        default_commission_rate=Decimal("10"),
        now=NOW,
        estimated_delivery_days=7,
    )
    fields.update(overrides)
    return AssemblyContext(**fields)


def _shipping():
    return {ALPHA.vendor_id: Money.zero(), BETA.vendor_id: Money.of(50)}


class TestTotals:
    def test_totals_without_coupon(self):
        order = assemble_order(_cart(), NO_COUPON, _shipping(), _ctx()).order

        assert order.subtotal == Money.of(1250)
        assert order.shipping_total == Money.of(50)
        assert order.tax_total == Money.of(225)
        assert order.discount_total == Money.zero()
        assert order.total == Money.of(1525)

    def test_total_identity_holds_with_discount(self):
        coupon = Coupon(
            coupon_id="c-1", code="SAVE20", type=CouponType.PERCENTAGE, value=Decimal("20")
        )
        outcome = CouponOutcome(discount=Money.of(150), coupon=coupon)
        order = assemble_order(_cart(), outcome, _shipping(), _ctx()).order

        assert order.tax_total == Money.of(198)
        assert order.total == (
            order.subtotal - order.discount_total + order.shipping_total + order.tax_total
        )
        assert order.coupon_code == "SAVE20"
        assert order.coupon_discount == Money.of(150)

    def test_vendor_taxes_use_their_own_subtotal(self):
        coupon = Coupon(
            coupon_id="c-1", code="FLAT100", type=CouponType.FIXED, value=Decimal("100")
        )
        outcome = CouponOutcome(discount=Money.of(100), coupon=coupon)
        order = assemble_order(_cart(), outcome, _shipping(), _ctx()).order

        assert [s.tax for s in order.sub_orders] == [Money.of(180), Money.of(45)]
        assert order.tax_total == Money.of(207)


class TestSubOrders:
    def test_one_sub_order_per_vendor(self):
        order = assemble_order(_cart(), NO_COUPON, _shipping(), _ctx()).order

        assert [s.vendor_id for s in order.sub_orders] == [ALPHA.vendor_id, BETA.vendor_id]
        assert [s.subtotal for s in order.sub_orders] == [Money.of(1000), Money.of(250)]
        assert [s.shipping for s in order.sub_orders] == [Money.zero(), Money.of(50)]
        assert all(s.status is SubOrderStatus.PENDING for s in order.sub_orders)
        assert order.sub_order_subtotal() == order.subtotal

    def test_cent_prices_keep_vendor_subtotals_in_step(self):
        alpha_items = (
            _item(ALPHA, "p-pen", "33.33", 3),
            _item(ALPHA, "p-ink", "0.07", 7),
        )
        beta_items = (_item(BETA, "p-pad", "19.99", 11),)
        cart = PricedCart(
            items=alpha_items + beta_items,
            groups=(VendorGroup(ALPHA, alpha_items), VendorGroup(BETA, beta_items)),
        )

        order = assemble_order(cart, NO_COUPON, _shipping(), _ctx()).order

        assert order.subtotal == Money.of("320.37")
        assert order.sub_order_subtotal() == order.subtotal

    def test_new_order_is_pending(self):
        order = assemble_order(_cart(), NO_COUPON, _shipping(), _ctx()).order

        assert order.status is OrderStatus.PENDING
        assert order.payment_status is PaymentStatus.PENDING
        assert order.created_at == NOW
        assert order.estimated_delivery == NOW + timedelta(days=7)
        assert order.order_number.value.startswith("ORD-")
        assert order.tracking_code.value.startswith("TRK-")


class TestCommissions:
    def test_vendor_rate_and_default_rate(self):
        draft = assemble_order(
            _cart(), NO_COUPON, _shipping(), _ctx(default_commission_rate=Decimal("15"))
        )
        alpha, beta = draft.commissions

        assert (alpha.commission, alpha.vendor_earnings) == (Money.of(100), Money.of(900))
        assert beta.commission_rate == Decimal("15")
        assert (beta.commission, beta.vendor_earnings) == (Money.of("37.50"), Money.of("212.50"))

    def test_commissions_reference_the_order(self):
        draft = assemble_order(_cart(), NO_COUPON, _shipping(), _ctx())
        assert {c.order_id for c in draft.commissions} == {draft.order.order_id}

    def test_zero_vendor_rate_is_respected(self):
        free = Vendor(vendor_id=ALPHA.vendor_id, store_name="Alpha", commission_rate=Decimal("0"))
        items = (_item(free, "p-widget", 500, 1),)
        cart = PricedCart(items=items, groups=(VendorGroup(free, items),))

        draft = assemble_order(cart, NO_COUPON, {}, _ctx())
        assert draft.commissions[0].commission == Money.zero()


class TestCustomerAndIdempotency:
    def test_guest_checkout_records_contact(self):
        order = assemble_order(_cart(), NO_COUPON, _shipping(), _ctx()).order

        assert order.customer_id is None
        assert order.guest_contact.email == "asha@example.com"
        assert order.guest_contact.name == "Asha Rao"

    def test_customer_checkout_has_no_guest_contact(self):
        ctx = _ctx(customer_id=CustomerId("cust-1"))
        order = assemble_order(_cart(), NO_COUPON, _shipping(), ctx).order

        assert order.customer_id == CustomerId("cust-1")
        assert order.guest_contact is None

    def test_scope_is_stored_only_with_a_key(self):
        without_key = assemble_order(
            _cart(), NO_COUPON, _shipping(), _ctx(idempotency_scope="guest:asha@example.com")
        ).order
        with_key = assemble_order(
            _cart(),
            NO_COUPON,
            _shipping(),
            _ctx(idempotency_scope="guest:asha@example.com", idempotency_key="k-1"),
        ).order

        assert without_key.idempotency_scope is None
        assert without_key.idempotency_key is None
        assert with_key.idempotency_scope == "guest:asha@example.com"
        assert with_key.idempotency_key == "k-1"
