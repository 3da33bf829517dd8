from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from order_commit.core.domain.model.money import Money


class CouponType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREESHIP = "freeship"


@dataclass(frozen=True)
class Coupon:
    coupon_id: str
    code: str
    type: CouponType
    value: Decimal
    min_order_value: Money = field(default_factory=Money.zero)
    max_discount: Money | None = None
    usage_limit: int | None = None
    used_count: int = 0
    is_active: bool = True
    starts_at: datetime | None = None
    expires_at: datetime | None = None


def normalize_coupon_code(code: str) -> str:
    return code.strip().upper()
