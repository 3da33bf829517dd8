"""Tests for per-vendor shipping resolution."""

from decimal import Decimal

import pytest

from order_commit.core.domain.model.catalog import Vendor, VendorId
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.shipping import (
    ShippingAddress,
    ShippingRate,
    ShippingSpeed,
    ShippingZone,
)
from order_commit.core.domain.service.shipping_rates import (
    VendorZoneShippingResolver,
    match_zone,
    pick_rate,
)
from order_commit.core.ports.outbound.shipping import VendorShippingGroup

INDIA = ShippingAddress(country="IN")
FRANCE = ShippingAddress(country="FR")


@pytest.fixture
def resolver():
    return VendorZoneShippingResolver(
        fallback_standard=Money.of(50), fallback_express=Money.of(100)
    )


def _zone(zone_id, countries=(), rates=()):
    return ShippingZone(zone_id=zone_id, name=zone_id, countries=countries, rates=rates)


def _vendor(**overrides) -> Vendor:
    fields = dict(vendor_id=VendorId("v-1"), store_name="Vendor One")
    fields.update(overrides)
    return Vendor(**fields)


def _charge(resolver, vendor, subtotal, address=INDIA, speed=ShippingSpeed.STANDARD, freeship=False):
    charges = resolver.resolve(
        [VendorShippingGroup(vendor=vendor, subtotal=Money.of(subtotal))],
        address,
        speed,
        freeship,
    )
    return charges[vendor.vendor_id]


class TestZoneMatching:
    def test_country_match_is_case_insensitive(self):
        zone = _zone("z-in", countries=("in",))
        assert match_zone((zone,), "IN") is zone

    def test_restricted_zone_wins_over_unrestricted(self):
        everywhere = _zone("z-all")
        india = _zone("z-in", countries=("IN",))
        assert match_zone((everywhere, india), "IN") is india

    def test_unrestricted_zone_catches_other_countries(self):
        everywhere = _zone("z-all")
        india = _zone("z-in", countries=("IN",))
        assert match_zone((india, everywhere), "FR") is everywhere

    def test_no_match(self):
        assert match_zone((_zone("z-in", countries=("IN",)),), "FR") is None

    def test_blank_country_only_matches_unrestricted(self):
        india = _zone("z-in", countries=("IN",))
        assert match_zone((india,), " ") is None


class TestRatePicking:
    def test_picks_rate_named_after_speed(self):
        standard = ShippingRate("Standard Post", Money.of(40))
        express = ShippingRate("EXPRESS courier", Money.of(90))
        assert pick_rate((standard, express), ShippingSpeed.EXPRESS) is express

    def test_falls_back_to_first_rate(self):
        flat = ShippingRate("Flat", Money.of(30))
        other = ShippingRate("Other", Money.of(60))
        assert pick_rate((flat, other), ShippingSpeed.EXPRESS) is flat

    def test_no_rates(self):
        assert pick_rate((), ShippingSpeed.STANDARD) is None


class TestVendorCharges:
    def test_zone_rate_applies(self, resolver):
        vendor = _vendor(
            shipping_zones=(
                _zone("z-in", ("IN",), (ShippingRate("Standard", Money.of(40)),)),
            )
        )
        assert _charge(resolver, vendor, 200) == Money.of(40)

    def test_rate_threshold_waives_shipping(self, resolver):
        rate = ShippingRate("Standard", Money.of(40), Money.of(1000))
        vendor = _vendor(shipping_zones=(_zone("z-in", ("IN",), (rate,)),))
        assert _charge(resolver, vendor, 999) == Money.of(40)
        assert _charge(resolver, vendor, 1000) == Money.zero()

    def test_unmatched_destination_considers_every_rate(self, resolver):
        vendor = _vendor(
            shipping_zones=(
                _zone("z-in", ("IN",), (ShippingRate("Standard", Money.of(40)),)),
                _zone("z-us", ("US",), (ShippingRate("Express", Money.of(300)),)),
            )
        )
        assert _charge(resolver, vendor, 100, FRANCE, ShippingSpeed.EXPRESS) == Money.of(300)

    def test_zero_rate_is_free(self, resolver):
        vendor = _vendor(
            shipping_zones=(_zone("z-all", rates=(ShippingRate("Standard", Money.zero()),)),)
        )
        assert _charge(resolver, vendor, 100) == Money.zero()

    def test_disabled_vendor_charges_nothing(self, resolver):
        vendor = _vendor(shipping_enabled=False, default_shipping_rate=Money.of(70))
        assert _charge(resolver, vendor, 100) == Money.zero()

    def test_freeship_coupon_zeroes_every_vendor(self, resolver):
        first = _vendor(default_shipping_rate=Money.of(70))
        second = _vendor(vendor_id=VendorId("v-2"))
        charges = resolver.resolve(
            [
                VendorShippingGroup(first, Money.of(100)),
                VendorShippingGroup(second, Money.of(100)),
            ],
            INDIA,
            ShippingSpeed.EXPRESS,
            True,
        )
        assert set(charges.values()) == {Money.zero()}

    def test_vendor_default_rate(self, resolver):
        vendor = _vendor(default_shipping_rate=Money.of(70))
        assert _charge(resolver, vendor, 100) == Money.of(70)

    def test_vendor_default_rate_doubles_for_express(self, resolver):
        vendor = _vendor(default_shipping_rate=Money.of(70))
        assert _charge(resolver, vendor, 100, speed=ShippingSpeed.EXPRESS) == Money.of(140)

    def test_vendor_threshold_waives_default_rate(self, resolver):
        vendor = _vendor(
            default_shipping_rate=Money.of(70), free_shipping_threshold=Money.of(500)
        )
        assert _charge(resolver, vendor, Decimal("500")) == Money.zero()

    def test_global_fallbacks(self, resolver):
        vendor = _vendor()
        assert _charge(resolver, vendor, 100) == Money.of(50)
        assert _charge(resolver, vendor, 100, speed=ShippingSpeed.EXPRESS) == Money.of(100)

    def test_same_inputs_give_same_charges(self, resolver):
        vendor = _vendor(default_shipping_rate=Money.of(70))
        assert _charge(resolver, vendor, 100) == _charge(resolver, vendor, 100)
