from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NoRateAvailable, ValidationFailed
from app.core.logging import get_logger
from app.models.enums import MarginType, RateType, ShippingMode, SurchargeType
from app.models.quote import Quote
from app.repositories.agreement_repo import AgreementRepository
from app.repositories.quote_repo import QuoteRepository
from app.repositories.surcharge_repo import SurchargeRepository
from app.services.money import round_money, to_decimal
from app.services.rate_types import MarginSpec, RateCard, SurchargeSpec
from app.services.units import convert_to_cm, convert_to_kg

logger = get_logger()

CBM_DIVISOR = Decimal("1000000")
IATA_DIVISOR = Decimal("6000")
QUOTE_VALID_DAYS = 14

CONTAINER_CAPACITY_CBM: dict[RateType, Decimal] = {
    RateType.SEA_CONTAINER_20: Decimal("33"),
    RateType.SEA_CONTAINER_40: Decimal("67"),
    RateType.SEA_CONTAINER_40HC: Decimal("76"),
    RateType.SEA_CONTAINER_45HC: Decimal("86"),
}

_METRIC_QUANTUM = Decimal("0.0001")


@dataclass
class ShipmentItem:
    length: Decimal
    width: Decimal
    height: Decimal
    weight: Decimal
    quantity: int = 1
    dimension_unit: str = "cm"
    weight_unit: str = "kg"
    product_name: str | None = None

    def __post_init__(self) -> None:
        for name in ("length", "width", "height", "weight"):
            value = to_decimal(getattr(self, name))
            if not value.is_finite():
                raise ValidationFailed(f"{name} must be a number")
            if value < 0:
                raise ValidationFailed(f"{name} must be >= 0")
            setattr(self, name, value)
        quantity = to_decimal(self.quantity)
        if not quantity.is_finite() or quantity != quantity.to_integral_value():
            raise ValidationFailed("quantity must be a whole number")
        if quantity < 1:
            raise ValidationFailed("quantity must be >= 1")
        self.quantity = int(quantity)

    @property
    def volume_cm3(self) -> Decimal:
        return (
            convert_to_cm(self.length, self.dimension_unit)
            * convert_to_cm(self.width, self.dimension_unit)
            * convert_to_cm(self.height, self.dimension_unit)
            * self.quantity
        )

    @property
    def weight_kg(self) -> Decimal:
        return convert_to_kg(self.weight, self.weight_unit) * self.quantity


@dataclass(frozen=True)
class ShipmentMetrics:
    total_cbm: Decimal
    total_weight: Decimal
    volumetric_weight: Decimal
    chargeable_weight: Decimal


@dataclass
class QuoteBreakdown:
    base_rate: Decimal
    surcharges: list[tuple[str, Decimal]]
    margin: dict[str, Any]
    subtotal: Decimal
    total: Decimal
    currency: str
    calculations: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "base_rate": str(self.base_rate),
            "surcharges": [{"type": kind, "amount": str(amount)} for kind, amount in self.surcharges],
            "margin": {key: str(value) for key, value in self.margin.items()},
            "subtotal": str(self.subtotal),
            "total": str(self.total),
            "currency": self.currency,
            "calculations": {key: str(value) for key, value in self.calculations.items()},
        }


@dataclass(frozen=True)
class ProfitSummary:
    buy_cost: Decimal
    sell_price: Decimal
    profit: Decimal
    margin_percent: Decimal


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_METRIC_QUANTUM)


def calculate_cbm(items: Iterable[ShipmentItem]) -> Decimal:
    return _quantize(sum((item.volume_cm3 for item in items), Decimal("0")) / CBM_DIVISOR)


def calculate_actual_weight(items: Iterable[ShipmentItem]) -> Decimal:
    return _quantize(sum((item.weight_kg for item in items), Decimal("0")))


def calculate_volumetric_weight(items: Iterable[ShipmentItem]) -> Decimal:
    return _quantize(sum((item.volume_cm3 for item in items), Decimal("0")) / IATA_DIVISOR)


def calculate_chargeable_weight(items: Iterable[ShipmentItem]) -> Decimal:
    items = list(items)
    return max(calculate_actual_weight(items), calculate_volumetric_weight(items))


def calculate_metrics(items: Iterable[ShipmentItem]) -> ShipmentMetrics:
    items = list(items)
    return ShipmentMetrics(
        total_cbm=calculate_cbm(items),
        total_weight=calculate_actual_weight(items),
        volumetric_weight=calculate_volumetric_weight(items),
        chargeable_weight=calculate_chargeable_weight(items),
    )


def container_utilization(items: Iterable[ShipmentItem], container_type: RateType) -> Decimal:
    container_type = RateType(container_type)
    if not container_type.is_container:
        raise ValidationFailed(f"{container_type.value} is not a container rate")
    percent = calculate_cbm(items) / CONTAINER_CAPACITY_CBM[container_type] * Decimal("100")
    return min(percent, Decimal("100")).quantize(Decimal("0.01"))


def profit_summary(buy_cost, sell_price) -> ProfitSummary:
    buy = to_decimal(buy_cost)
    sell = to_decimal(sell_price)
    profit = sell - buy
    margin = (profit / buy * Decimal("100")).quantize(Decimal("0.01")) if buy else Decimal("0")
    return ProfitSummary(buy_cost=buy, sell_price=sell, profit=profit, margin_percent=margin)


def _check_mode(mode: ShippingMode, rate_type: RateType) -> None:
    if mode == ShippingMode.AIR and rate_type != RateType.AIR_KG:
        raise ValidationFailed(f"{rate_type.value} cannot price an air shipment")
    if mode == ShippingMode.SEA and rate_type == RateType.AIR_KG:
        raise ValidationFailed("AIR_KG cannot price a sea shipment")


def build_breakdown(
    items: Iterable[ShipmentItem],
    rate: RateCard,
    mode: ShippingMode | str,
    surcharges: Iterable[SurchargeSpec] = (),
    margin: MarginSpec | None = None,
    container_count: int = 1,
) -> QuoteBreakdown:
    """Price ``items`` against ``rate``.

    Base is the rate's buy price times the billing basis: chargeable weight for
    ``AIR_KG``, CBM for ``SEA_CBM`` and the container count for container rates.
    Percentage surcharges apply to the running subtotal in the order given. The
    minimum charge is a floor on the total after margin.
    """
    items = list(items)
    mode = ShippingMode(mode)
    rate_type = RateType(rate.rate_type)
    currency = rate.currency
    _check_mode(mode, rate_type)

    metrics = calculate_metrics(items)
    calculations: dict[str, Any] = {}
    if rate_type == RateType.AIR_KG:
        basis = metrics.chargeable_weight
        calculations.update(
            total_weight=metrics.total_weight,
            volumetric_weight=metrics.volumetric_weight,
            chargeable_weight=metrics.chargeable_weight,
        )
    elif rate_type == RateType.SEA_CBM:
        basis = metrics.total_cbm
        calculations["total_cbm"] = metrics.total_cbm
    else:
        if container_count < 1:
            raise ValidationFailed("container_count must be >= 1")
        basis = Decimal(container_count) if items else Decimal("0")
        calculations.update(
            total_cbm=metrics.total_cbm,
            container_type=rate_type.value,
            container_count=container_count,
            utilization_percent=container_utilization(items, rate_type),
        )

    base = round_money(to_decimal(rate.buy_price) * basis, currency)

    running = base
    lines: list[tuple[str, Decimal]] = []
    for surcharge in surcharges:
        if surcharge.is_percentage:
            amount = round_money(running * to_decimal(surcharge.amount) / Decimal("100"), currency)
        else:
            amount = round_money(surcharge.amount, currency)
        lines.append((SurchargeType(surcharge.type).value, amount))
        running += amount
    subtotal = running

    if margin is None:
        margin = MarginSpec(MarginType.PERCENTAGE, to_decimal(rate.margin_percent))
    if margin.type == MarginType.PERCENTAGE:
        margin_amount = round_money(subtotal * to_decimal(margin.value) / Decimal("100"), currency)
    else:
        margin_amount = round_money(margin.value, currency)

    total = subtotal + margin_amount
    if rate.min_charge is not None:
        floor = round_money(rate.min_charge, currency)
        calculations["min_charge"] = floor
        if total < floor:
            total = floor

    return QuoteBreakdown(
        base_rate=base,
        surcharges=lines,
        margin={"type": MarginType(margin.type).value, "value": to_decimal(margin.value), "amount": margin_amount},
        subtotal=subtotal,
        total=total,
        currency=currency,
        calculations=calculations,
    )


class QuoteService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.agreement_repo = AgreementRepository(session)
        self.surcharge_repo = SurchargeRepository(session)
        self.quote_repo = QuoteRepository(session)

    async def calculate(
        self,
        origin: str,
        destination: str,
        mode: ShippingMode | str,
        rate_type: RateType | str,
        items: Iterable[ShipmentItem],
        margin: MarginSpec | None = None,
        container_count: int = 1,
        as_of: date | None = None,
    ) -> tuple[RateCard, QuoteBreakdown]:
        as_of = as_of or date.today()
        rate_type = RateType(rate_type)
        rate = await self.agreement_repo.find_active_rate(origin, destination, rate_type, as_of)
        if rate is None:
            logger.info("no_rate_available", origin=origin, destination=destination, rate_type=rate_type.value)
            raise NoRateAvailable(f"No rate for {origin} -> {destination} ({rate_type.value})")

        surcharges = await self.surcharge_repo.list_active(origin, destination, rate_type, as_of)
        breakdown = build_breakdown(items, rate, mode, surcharges, margin, container_count)
        return rate, breakdown

    async def save_quote(self, shipment_request_id: uuid.UUID, rate: RateCard, breakdown: QuoteBreakdown) -> Quote:
        profit = profit_summary(breakdown.subtotal, breakdown.total)
        quote = Quote(
            shipment_request_id=shipment_request_id,
            agreement_id=rate.id,
            breakdown=breakdown.as_dict(),
            buy_cost=breakdown.subtotal,
            total_sell_price=breakdown.total,
            profit_margin_percentage=profit.margin_percent,
            currency=breakdown.currency,
            valid_until=date.today() + timedelta(days=QUOTE_VALID_DAYS),
        )
        quote = await self.quote_repo.create(quote)
        logger.info("quote_saved", quote_id=str(quote.id), shipment_request_id=str(shipment_request_id))
        return quote
