from __future__ import annotations

from dataclasses import dataclass

from returns.result import Result, Success

from order_commit.adapters.outbound.in_memory_store import InMemoryDatabase
from order_commit.core.domain.model.coupon import Coupon, normalize_coupon_code
from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.ports.outbound.coupons import CouponStore


@dataclass
class InMemoryCouponStore(CouponStore):
    db: InMemoryDatabase

    def find_active_coupon(self, code: str) -> Result[Coupon | None, CheckoutError]:
        with self.db.lock:
            coupon = self.db.coupons.get(normalize_coupon_code(code))
        if coupon is None or not coupon.is_active:
            return Success(None)
        return Success(coupon)
