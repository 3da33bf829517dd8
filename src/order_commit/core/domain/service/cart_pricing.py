from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success

from order_commit.core.domain.model.catalog import (
    Product,
    ProductId,
    StockState,
    Vendor,
    VendorId,
)
from order_commit.core.domain.model.errors import (
    CheckoutError,
    InsufficientStock,
    OutOfStock,
)
from order_commit.core.domain.model.money import Money, fold_money
from order_commit.core.domain.model.order import LineItem
from order_commit.core.domain.model.variant import VariantSelection
from order_commit.core.domain.service.variant_pricing import resolve_unit_price
from order_commit.core.ports.inbound.place_order import CheckoutLine
from order_commit.core.ports.outbound.catalog import CatalogStore


@dataclass(frozen=True)
class VendorGroup:
    vendor: Vendor
    items: tuple[LineItem, ...]

    @property
    def subtotal(self) -> Money:
        return fold_money(item.subtotal() for item in self.items)


@dataclass(frozen=True)
class PricedCart:
    items: tuple[LineItem, ...]
    groups: tuple[VendorGroup, ...]

    @property
    def subtotal(self) -> Money:
        return fold_money(item.subtotal() for item in self.items)


def price_cart(
    lines: Sequence[CheckoutLine], catalog: CatalogStore
) -> Result[PricedCart, CheckoutError]:
    """Re-read every line's product and price it server-side.

    Read-only. The first line that fails aborts the whole cart.
    """
    items: list[LineItem] = []
    vendors: dict[VendorId, Vendor] = {}

    for line in lines:
        fetched = catalog.get_product(ProductId(line.product_id))
        if isinstance(fetched, Failure):
            return fetched
        product = fetched.unwrap()

        checked = _check_stock(product, line.quantity)
        if isinstance(checked, Failure):
            return checked

        if product.vendor_id not in vendors:
            vendor = catalog.get_vendor(product.vendor_id)
            if isinstance(vendor, Failure):
                return vendor
            vendors[product.vendor_id] = vendor.unwrap()

        selection = VariantSelection.of(line.variant)
        items.append(
            LineItem(
                product_id=product.product_id,
                vendor_id=product.vendor_id,
                name=product.name,
                image=product.image,
                unit_price=resolve_unit_price(product, selection),
                quantity=line.quantity,
                variant=selection,
            )
        )

    groups = tuple(
        VendorGroup(
            vendor=vendor,
            items=tuple(it for it in items if it.vendor_id == vendor_id),
        )
        for vendor_id, vendor in vendors.items()
    )
    return Success(PricedCart(items=tuple(items), groups=groups))


def _check_stock(product: Product, quantity: int) -> Result[Product, CheckoutError]:
    if product.stock_state is StockState.OUT_OF_STOCK:
        return Failure(
            OutOfStock(
                message=f"{product.name} is out of stock.",
                product_id=product.product_id.value,
            )
        )
    if product.stock_quantity < quantity:
        return Failure(
            InsufficientStock(
                message=f"Only {product.stock_quantity} units of {product.name} available.",
                product_id=product.product_id.value,
                requested=quantity,
                available=product.stock_quantity,
            )
        )
    return Success(product)
