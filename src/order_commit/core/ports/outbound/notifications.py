from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union

from returns.result import Result

from order_commit.core.domain.model.catalog import VendorId
from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import OrderNumber, OrderStatus, SubOrderStatus


@dataclass(frozen=True)
class OrderPlaced:
    order_number: OrderNumber
    vendor_ids: tuple[VendorId, ...]
    total: Money


@dataclass(frozen=True)
class SubOrderStatusChanged:
    order_number: OrderNumber
    vendor_id: VendorId
    status: SubOrderStatus
    order_status: OrderStatus


@dataclass(frozen=True)
class OrderCancelled:
    order_number: OrderNumber
    reason: str


Notification = Union[OrderPlaced, SubOrderStatusChanged, OrderCancelled]


class NotificationSink(Protocol):
    def notify(self, event: Notification) -> Result[None, CheckoutError]: ...
