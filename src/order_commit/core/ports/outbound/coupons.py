from __future__ import annotations

from typing import Protocol

from returns.result import Result

from order_commit.core.domain.model.coupon import Coupon
from order_commit.core.domain.model.errors import CheckoutError


class CouponStore(Protocol):
    def find_active_coupon(self, code: str) -> Result[Coupon | None, CheckoutError]:
        """Look up an active coupon by its normalized (upper-case) code."""
        ...
