from __future__ import annotations

from typing import Mapping

from order_commit.core.domain.model.catalog import Product
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.variant import VariantSelection, normalize_part


def resolve_unit_price(product: Product, selection: VariantSelection) -> Money:
    """Authoritative unit price for `selection`; the base price when nothing matches."""
    prices = product.variant_prices
    if not prices or selection.is_empty():
        return product.price

    candidates = (selection.canonical_key(), *selection.legacy_keys())
    for candidate in candidates:
        price = _lookup(prices, candidate)
        if price is not None:
            return price
    return product.price


def _lookup(prices: Mapping[str, Money], candidate: str) -> Money | None:
    for raw_key, price in prices.items():
        if str(raw_key).strip() == candidate and _usable(price):
            return price
    for raw_key, price in prices.items():
        if normalize_part(raw_key) == normalize_part(candidate) and _usable(price):
            return price
    return None


def _usable(price: Money | None) -> bool:
    return price is not None and price.amount >= 0
