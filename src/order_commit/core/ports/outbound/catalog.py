from __future__ import annotations

from typing import Protocol

from returns.result import Result

from order_commit.core.domain.model.catalog import Product, ProductId, Vendor, VendorId
from order_commit.core.domain.model.errors import CheckoutError


class CatalogStore(Protocol):
    """Read side of the catalog. Stock writes go through a `Transaction`."""

    def get_product(self, product_id: ProductId) -> Result[Product, CheckoutError]: ...

    def get_vendor(self, vendor_id: VendorId) -> Result[Vendor, CheckoutError]: ...
