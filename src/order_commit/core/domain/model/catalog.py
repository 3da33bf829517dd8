from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Mapping

from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.shipping import ShippingZone

DEFAULT_LOW_STOCK_THRESHOLD = 10


class StockState(str, Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


def stock_state_for(quantity: int, low_stock_threshold: int) -> StockState:
    if quantity <= 0:
        return StockState.OUT_OF_STOCK
    if quantity <= low_stock_threshold:
        return StockState.LOW_STOCK
    return StockState.IN_STOCK


@dataclass(frozen=True)
class ProductId:
    value: str


@dataclass(frozen=True)
class VendorId:
    value: str


@dataclass(frozen=True)
class Product:
    product_id: ProductId
    vendor_id: VendorId
    name: str
    price: Money
    stock_quantity: int
    stock_state: StockState = StockState.IN_STOCK
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    image: str = ""
    # canonical or legacy variant key -> unit price
    variant_prices: Mapping[str, Money] = field(default_factory=dict)


@dataclass(frozen=True)
class StockLevel:
    """Post-write view of a product's stock, as returned by conditional stock writes."""

    product_id: ProductId
    stock_quantity: int
    low_stock_threshold: int

    def derived_state(self) -> StockState:
        return stock_state_for(self.stock_quantity, self.low_stock_threshold)


@dataclass(frozen=True)
class Vendor:
    vendor_id: VendorId
    store_name: str
    commission_rate: Decimal | None = None
    shipping_enabled: bool = True
    default_shipping_rate: Money = field(default_factory=Money.zero)
    free_shipping_threshold: Money = field(default_factory=Money.zero)
    shipping_zones: tuple[ShippingZone, ...] = ()
