from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, Sequence

from returns.result import Result

from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import OrderId, OrderNumber, TrackingCode


@dataclass(frozen=True)
class CheckoutLine:
    product_id: str
    quantity: int
    variant: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ShippingAddressInput:
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""


@dataclass(frozen=True)
class PlaceOrderCommand:
    lines: Sequence[CheckoutLine]
    shipping_address: ShippingAddressInput
    payment_method: str
    customer_id: str | None = None
    coupon_code: str | None = None
    shipping_speed: str = "standard"
    idempotency_key: str | None = None


@dataclass(frozen=True)
class CheckoutReceipt:
    order_id: OrderId
    order_number: OrderNumber
    total: Money
    tracking_code: TrackingCode
    replay: bool = False


class PlaceOrderUseCase(Protocol):
    def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[CheckoutReceipt, CheckoutError]: ...
