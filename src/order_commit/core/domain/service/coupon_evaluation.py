from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from returns.result import Failure, Result, Success

from order_commit.core.domain.model.coupon import Coupon, CouponType, normalize_coupon_code
from order_commit.core.domain.model.errors import (
    CheckoutError,
    CouponExpired,
    CouponLimitReached,
    InvalidCoupon,
    MinOrderNotMet,
)
from order_commit.core.domain.model.money import Money
from order_commit.core.ports.outbound.coupons import CouponStore


@dataclass(frozen=True)
class CouponOutcome:
    discount: Money
    coupon: Coupon | None = None

    @property
    def freeship(self) -> bool:
        return self.coupon is not None and self.coupon.type is CouponType.FREESHIP


NO_COUPON = CouponOutcome(discount=Money.zero())


def evaluate_coupon(
    code: str | None,
    subtotal: Money,
    coupons: CouponStore,
    now: datetime,
) -> Result[CouponOutcome, CheckoutError]:
    if code is None or not code.strip():
        return Success(NO_COUPON)

    normalized = normalize_coupon_code(code)
    found = coupons.find_active_coupon(normalized)
    if isinstance(found, Failure):
        return found
    coupon = found.unwrap()
    if coupon is None or not coupon.is_active:
        return Failure(InvalidCoupon(message="Invalid coupon code.", code=normalized))

    return check_coupon_rules(coupon, subtotal, now).map(
        lambda c: CouponOutcome(discount=discount_for(c, subtotal), coupon=c)
    )


def check_coupon_rules(
    coupon: Coupon, subtotal: Money, now: datetime
) -> Result[Coupon, CheckoutError]:
    if coupon.starts_at is not None and coupon.starts_at > now:
        return Failure(InvalidCoupon(message="Coupon is not active yet.", code=coupon.code))
    if coupon.expires_at is not None and coupon.expires_at < now:
        return Failure(CouponExpired(message="Coupon has expired.", code=coupon.code))
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return Failure(
            CouponLimitReached(message="Coupon usage limit reached.", code=coupon.code)
        )
    if subtotal < coupon.min_order_value:
        return Failure(
            MinOrderNotMet(
                message=(
                    "Minimum order value for this coupon is "
                    f"{coupon.min_order_value.amount} {coupon.min_order_value.currency}."
                ),
                code=coupon.code,
            )
        )
    return Success(coupon)


def discount_for(coupon: Coupon, subtotal: Money) -> Money:
    if coupon.type is CouponType.PERCENTAGE:
        discount = subtotal.percent(coupon.value)
        if coupon.max_discount is not None:
            discount = discount.min(coupon.max_discount)
    elif coupon.type is CouponType.FIXED:
        discount = Money.of(coupon.value, subtotal.currency)
    else:
        return Money.zero(subtotal.currency)
    # a discount never exceeds the subtotal
    return discount.min(subtotal)
