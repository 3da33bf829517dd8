from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from order_commit.core.domain.model.catalog import VendorId
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import OrderId


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CommissionRecord:
    order_id: OrderId
    vendor_id: VendorId
    vendor_name: str
    subtotal: Money
    commission_rate: Decimal
    commission: Money
    vendor_earnings: Money
    status: CommissionStatus = CommissionStatus.PENDING

    @staticmethod
    def for_vendor(
        order_id: OrderId,
        vendor_id: VendorId,
        vendor_name: str,
        subtotal: Money,
        commission_rate: Decimal,
    ) -> "CommissionRecord":
        commission = subtotal.percent(commission_rate)
        return CommissionRecord(
            order_id=order_id,
            vendor_id=vendor_id,
            vendor_name=vendor_name,
            subtotal=subtotal,
            commission_rate=commission_rate,
            commission=commission,
            vendor_earnings=subtotal - commission,
        )
