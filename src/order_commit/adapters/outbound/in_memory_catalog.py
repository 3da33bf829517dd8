from __future__ import annotations

from dataclasses import dataclass

from returns.result import Failure, Result, Success

from order_commit.adapters.outbound.in_memory_store import InMemoryDatabase
from order_commit.core.domain.model.catalog import Product, ProductId, Vendor, VendorId
from order_commit.core.domain.model.errors import (
    CheckoutError,
    ProductNotFound,
    VendorNotFound,
)
from order_commit.core.ports.outbound.catalog import CatalogStore


@dataclass
class InMemoryCatalogStore(CatalogStore):
    db: InMemoryDatabase

    def get_product(self, product_id: ProductId) -> Result[Product, CheckoutError]:
        with self.db.lock:
            product = self.db.products.get(product_id)
        if product is None:
            return Failure(
                ProductNotFound(
                    message=f"Product {product_id.value} not found.",
                    product_id=product_id.value,
                )
            )
        return Success(product)

    def get_vendor(self, vendor_id: VendorId) -> Result[Vendor, CheckoutError]:
        with self.db.lock:
            vendor = self.db.vendors.get(vendor_id)
        if vendor is None:
            return Failure(
                VendorNotFound(
                    message=f"Vendor {vendor_id.value} not found.",
                    vendor_id=vendor_id.value,
                )
            )
        return Success(vendor)
