"""Tests for money arithmetic, identifiers and idempotency scoping."""

import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from order_commit.core.domain.model.catalog import StockLevel, ProductId, StockState, stock_state_for
from order_commit.core.domain.model.idempotency import (
    IdempotencyScope,
    normalize_idempotency_key,
)
from order_commit.core.domain.model.money import Money, fold_money
from order_commit.core.domain.model.order import (
    CustomerId,
    OrderNumber,
    PaymentMethod,
    TrackingCode,
)


class TestMoney:
    def test_rounds_half_up_to_cents(self):
        assert Money.of("10.005").amount == Decimal("10.01")
        assert Money.of("10.004").amount == Decimal("10.00")

    def test_arithmetic(self):
        assert Money.of(10) + Money.of("0.5") == Money.of("10.50")
        assert Money.of(10) - Money.of(3) == Money.of(7)
        assert Money.of("2.50") * 3 == Money.of("7.50")
        assert Money.of(1000).percent(Decimal("18")) == Money.of(180)

    def test_currency_mismatch(self):
        with pytest.raises(ValueError):
            Money.of(1, "INR") + Money.of(1, "USD")

    def test_fold(self):
        assert fold_money([Money.of(1), Money.of(2), Money.of(3)]) == Money.of(6)
        assert fold_money([]) == Money.zero()


class TestIdentifiers:
    def test_order_number_format(self):
        at = datetime(2026, 3, 1, tzinfo=timezone.utc)
        number = OrderNumber.new(at).value
        assert re.fullmatch(rf"ORD-{int(at.timestamp() * 1000)}-[0-9A-Z]{{4}}", number)

    def test_tracking_code_format(self):
        assert re.fullmatch(r"TRK-[0-9A-Z]{10}", TrackingCode.new().value)

    def test_payment_method_aliases(self):
        assert PaymentMethod.parse(" Cash ") is PaymentMethod.COD
        assert PaymentMethod.parse("UPI") is PaymentMethod.UPI
        with pytest.raises(ValueError):
            PaymentMethod.parse("barter")


class TestStockState:
    @pytest.mark.parametrize(
        "quantity,expected",
        [(0, StockState.OUT_OF_STOCK), (-1, StockState.OUT_OF_STOCK), (10, StockState.LOW_STOCK), (11, StockState.IN_STOCK)],
    )
    def test_derivation(self, quantity, expected):
        assert stock_state_for(quantity, 10) is expected

    def test_stock_level_derives_state(self):
        level = StockLevel(ProductId("p-1"), stock_quantity=2, low_stock_threshold=5)
        assert level.derived_state() is StockState.LOW_STOCK


class TestIdempotencyScope:
    def test_customer_scope(self):
        scope = IdempotencyScope.for_checkout(CustomerId("cust-9"), email="x@y.z")
        assert scope.value == "user:cust-9"

    def test_guest_email_is_normalized(self):
        scope = IdempotencyScope.for_checkout(None, email="  Asha@Example.COM ")
        assert scope.value == "guest:asha@example.com"

    def test_guest_phone_keeps_last_ten_digits(self):
        scope = IdempotencyScope.for_checkout(None, phone="+91 98765-43210")
        assert scope.value == "guest:9876543210"

    def test_anonymous_guest(self):
        assert IdempotencyScope.for_checkout(None).value == "guest:anonymous"

    @pytest.mark.parametrize("raw,expected", [(None, None), ("", None), ("   ", None), (" k-1 ", "k-1")])
    def test_key_normalization(self, raw, expected):
        assert normalize_idempotency_key(raw) == expected
