from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from order_commit.core.domain.model.catalog import Vendor, VendorId
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.shipping import (
    ShippingAddress,
    ShippingRate,
    ShippingSpeed,
    ShippingZone,
)
from order_commit.core.ports.outbound.shipping import (
    ShippingRateResolver,
    VendorShippingGroup,
)


@dataclass(frozen=True)
class VendorZoneShippingResolver(ShippingRateResolver):
    """Per-vendor shipping from the vendor's zones and rates.

    Falls back to the vendor's own default rate/threshold and then to the
    global standard/express constants. Deterministic for identical inputs.
    """

    fallback_standard: Money
    fallback_express: Money

    def resolve(
        self,
        groups: Sequence[VendorShippingGroup],
        address: ShippingAddress,
        speed: ShippingSpeed,
        freeship: bool,
    ) -> Mapping[VendorId, Money]:
        charges: dict[VendorId, Money] = {}
        for group in groups:
            vendor_id = group.vendor.vendor_id
            if freeship or not group.vendor.shipping_enabled:
                charges[vendor_id] = Money.zero()
                continue
            charges[vendor_id] = self._charge_for(group, address, speed)
        return charges

    def _charge_for(
        self, group: VendorShippingGroup, address: ShippingAddress, speed: ShippingSpeed
    ) -> Money:
        vendor = group.vendor
        subtotal = group.subtotal

        rate = pick_rate(_candidate_rates(vendor, address.country), speed)
        if rate is not None:
            threshold = rate.free_shipping_threshold
            if threshold.amount > 0 and subtotal >= threshold:
                return Money.zero()
            return rate.rate if rate.rate.amount > 0 else Money.zero()

        threshold = vendor.free_shipping_threshold
        if threshold.amount > 0 and subtotal >= threshold:
            return Money.zero()

        default = vendor.default_shipping_rate
        if speed is ShippingSpeed.EXPRESS:
            return default * 2 if default.amount > 0 else self.fallback_express
        return default if default.amount > 0 else self.fallback_standard


def match_zone(zones: Sequence[ShippingZone], country: str) -> ShippingZone | None:
    if country.strip():
        for zone in zones:
            if zone.covers(country):
                return zone
    for zone in zones:
        if zone.is_unrestricted():
            return zone
    return None


def pick_rate(
    rates: Sequence[ShippingRate], speed: ShippingSpeed
) -> ShippingRate | None:
    if not rates:
        return None
    for rate in rates:
        if speed.value in rate.name.strip().lower():
            return rate
    return rates[0]


def _candidate_rates(vendor: Vendor, country: str) -> tuple[ShippingRate, ...]:
    zone = match_zone(vendor.shipping_zones, country)
    if zone is not None:
        return zone.rates
    # no zone covers the destination: consider every configured rate
    return tuple(rate for z in vendor.shipping_zones for rate in z.rates)
