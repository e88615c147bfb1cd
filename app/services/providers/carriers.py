from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from app.models.enums import ShippingMode
from app.services.money import round_money


@dataclass(frozen=True)
class CarrierTariff:
    carrier: str
    service: str
    air_per_kg: Decimal
    sea_per_cbm: Decimal
    air_transit_days: int
    sea_transit_days: int


CARRIER_TARIFFS = (
    CarrierTariff("DHL", "Express Worldwide", Decimal("5.5"), Decimal("45"), 3, 25),
    CarrierTariff("FedEx", "International Priority", Decimal("6.0"), Decimal("50"), 2, 28),
    CarrierTariff("Aramex", "Priority Parcel", Decimal("4.8"), Decimal("42"), 4, 30),
)


def quote_carriers(mode: ShippingMode | str, weight_kg: Decimal, cbm: Decimal, currency: str = "USD") -> list[dict]:
    """Indicative carrier prices, cheapest first."""
    mode = ShippingMode(mode)
    rates = []
    for tariff in CARRIER_TARIFFS:
        if mode == ShippingMode.AIR:
            price = tariff.air_per_kg * weight_kg
            days = tariff.air_transit_days
        else:
            price = tariff.sea_per_cbm * cbm
            days = tariff.sea_transit_days
        rates.append(
            {
                "carrier": tariff.carrier,
                "service": tariff.service,
                "price": float(round_money(price, currency)),
                "currency": currency,
                "transit_days": days,
            }
        )
    return sorted(rates, key=lambda rate: rate["price"])
