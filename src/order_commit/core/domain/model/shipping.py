from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from order_commit.core.domain.model.money import Money


class ShippingSpeed(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"


@dataclass(frozen=True)
class ShippingRate:
    name: str
    rate: Money
    free_shipping_threshold: Money = field(default_factory=Money.zero)


@dataclass(frozen=True)
class ShippingZone:
    zone_id: str
    name: str
    countries: tuple[str, ...] = ()
    rates: tuple[ShippingRate, ...] = ()

    def is_unrestricted(self) -> bool:
        return not self.countries

    def covers(self, country: str) -> bool:
        wanted = country.strip().lower()
        return any(c.strip().lower() == wanted for c in self.countries)


@dataclass(frozen=True)
class ShippingAddress:
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
