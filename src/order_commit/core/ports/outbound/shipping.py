from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from order_commit.core.domain.model.catalog import Vendor, VendorId
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.shipping import ShippingAddress, ShippingSpeed


@dataclass(frozen=True)
class VendorShippingGroup:
    vendor: Vendor
    subtotal: Money


class ShippingRateResolver(Protocol):
    def resolve(
        self,
        groups: Sequence[VendorShippingGroup],
        address: ShippingAddress,
        speed: ShippingSpeed,
        freeship: bool,
    ) -> Mapping[VendorId, Money]: ...
