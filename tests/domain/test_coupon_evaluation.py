"""Tests for coupon validation rules and discount computation."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from returns.result import Failure, Success

from order_commit.core.domain.model.coupon import Coupon, CouponType
from order_commit.core.domain.model.errors import (
    CouponExpired,
    CouponLimitReached,
    InvalidCoupon,
    MinOrderNotMet,
)
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.service.coupon_evaluation import (
    NO_COUPON,
    discount_for,
    evaluate_coupon,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class _Coupons:
    def __init__(self, *coupons: Coupon) -> None:
        self.by_code = {c.code: c for c in coupons}
        self.lookups: list[str] = []

    def find_active_coupon(self, code):
        self.lookups.append(code)
        coupon = self.by_code.get(code)
        return Success(coupon if coupon is not None and coupon.is_active else None)


def _coupon(**overrides) -> Coupon:
    fields = dict(
        coupon_id="c-1",
        code="SAVE20",
        type=CouponType.PERCENTAGE,
        value=Decimal("20"),
    )
    fields.update(overrides)
    return Coupon(**fields)


class TestNoCoupon:
    def test_missing_code_gives_zero_discount(self):
        result = evaluate_coupon(None, Money.of(1000), _Coupons(), NOW)
        assert result == Success(NO_COUPON)

    def test_blank_code_gives_zero_discount(self):
        coupons = _Coupons()
        result = evaluate_coupon("   ", Money.of(1000), coupons, NOW)
        assert result.unwrap().discount == Money.zero()
        assert coupons.lookups == []


class TestCouponRules:
    def test_code_is_upper_cased_before_lookup(self):
        coupons = _Coupons(_coupon())
        result = evaluate_coupon(" save20 ", Money.of(100), coupons, NOW)
        assert isinstance(result, Success)
        assert coupons.lookups == ["SAVE20"]

    def test_unknown_code_is_rejected(self):
        result = evaluate_coupon("NOPE", Money.of(100), _Coupons(), NOW)
        err = result.failure()
        assert isinstance(err, InvalidCoupon)
        assert err.message == "Invalid coupon code."

    def test_inactive_coupon_is_rejected(self):
        coupons = _Coupons(_coupon(is_active=False))
        result = evaluate_coupon("SAVE20", Money.of(100), coupons, NOW)
        assert isinstance(result.failure(), InvalidCoupon)

    def test_not_started_coupon_is_rejected(self):
        coupons = _Coupons(_coupon(starts_at=NOW + timedelta(hours=1)))
        err = evaluate_coupon("SAVE20", Money.of(100), coupons, NOW).failure()
        assert isinstance(err, InvalidCoupon)
        assert err.message == "Coupon is not active yet."

    def test_expired_coupon_is_rejected(self):
        coupons = _Coupons(_coupon(expires_at=NOW - timedelta(seconds=1)))
        err = evaluate_coupon("SAVE20", Money.of(100), coupons, NOW).failure()
        assert isinstance(err, CouponExpired)
        assert err.message == "Coupon has expired."

    def test_coupon_inside_window_is_accepted(self):
        coupons = _Coupons(
            _coupon(starts_at=NOW - timedelta(days=1), expires_at=NOW + timedelta(days=1))
        )
        result = evaluate_coupon("SAVE20", Money.of(100), coupons, NOW)
        assert result.unwrap().discount == Money.of(20)

    def test_exhausted_coupon_is_rejected(self):
        coupons = _Coupons(_coupon(usage_limit=5, used_count=5))
        err = evaluate_coupon("SAVE20", Money.of(100), coupons, NOW).failure()
        assert isinstance(err, CouponLimitReached)

    def test_unlimited_coupon_ignores_used_count(self):
        coupons = _Coupons(_coupon(usage_limit=None, used_count=10_000))
        assert isinstance(evaluate_coupon("SAVE20", Money.of(100), coupons, NOW), Success)

    def test_minimum_order_value_is_enforced(self):
        coupons = _Coupons(_coupon(min_order_value=Money.of(500)))
        err = evaluate_coupon("SAVE20", Money.of(499.99), coupons, NOW).failure()
        assert isinstance(err, MinOrderNotMet)
        assert isinstance(err, InvalidCoupon)

    def test_minimum_order_value_is_inclusive(self):
        coupons = _Coupons(_coupon(min_order_value=Money.of(500)))
        assert isinstance(evaluate_coupon("SAVE20", Money.of(500), coupons, NOW), Success)

    def test_rule_violation_is_a_failure_not_a_silent_skip(self):
        coupons = _Coupons(_coupon(expires_at=NOW - timedelta(days=3)))
        assert isinstance(evaluate_coupon("SAVE20", Money.of(100), coupons, NOW), Failure)


class TestDiscounts:
    def test_percentage_discount_is_capped(self):
        coupon = _coupon(max_discount=Money.of(150))
        assert discount_for(coupon, Money.of(1000)) == Money.of(150)

    def test_percentage_discount_under_cap(self):
        coupon = _coupon(max_discount=Money.of(150))
        assert discount_for(coupon, Money.of(500)) == Money.of(100)

    def test_percentage_discount_is_rounded_to_cents(self):
        coupon = _coupon(value=Decimal("15"))
        assert discount_for(coupon, Money.of("33.33")) == Money.of("5.00")

    def test_fixed_discount(self):
        coupon = _coupon(type=CouponType.FIXED, value=Decimal("100"))
        assert discount_for(coupon, Money.of(1000)) == Money.of(100)

    def test_fixed_discount_never_exceeds_subtotal(self):
        coupon = _coupon(type=CouponType.FIXED, value=Decimal("100"))
        assert discount_for(coupon, Money.of(60)) == Money.of(60)

    def test_freeship_has_no_monetary_discount(self):
        coupons = _Coupons(_coupon(code="SHIP", type=CouponType.FREESHIP, value=Decimal("0")))
        outcome = evaluate_coupon("ship", Money.of(1000), coupons, NOW).unwrap()
        assert outcome.discount == Money.zero()
        assert outcome.freeship is True
        assert outcome.coupon.code == "SHIP"

    def test_percentage_coupon_does_not_waive_shipping(self):
        outcome = evaluate_coupon("SAVE20", Money.of(1000), _Coupons(_coupon()), NOW).unwrap()
        assert outcome.freeship is False
