import uuid
from decimal import Decimal

import pytest

from app.core.errors import NoRateAvailable, ValidationFailed
from app.models.enums import MarginType, RateType, ShippingMode, SurchargeType
from app.services.calculator import (
    QuoteService,
    ShipmentItem,
    build_breakdown,
    calculate_cbm,
    calculate_metrics,
    container_utilization,
    profit_summary,
)
from app.services.rate_types import MarginSpec, RateCard, SurchargeSpec


class FakeSession:
    def __init__(self) -> None:
        self.added = []

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        return None


class FakeAgreementRepo:
    def __init__(self, rate):
        self.rate = rate
        self.calls = []

    async def find_active_rate(self, origin, destination, rate_type, as_of):
        self.calls.append((origin, destination, rate_type, as_of))
        return self.rate


class FakeSurchargeRepo:
    def __init__(self, surcharges=()):
        self.surcharges = list(surcharges)

    async def list_active(self, origin, destination, rate_type, as_of):
        return self.surcharges


class FakeQuoteRepo:
    def __init__(self):
        self.saved = []

    async def create(self, quote):
        quote.id = uuid.uuid4()
        self.saved.append(quote)
        return quote


def carton(**overrides):
    values = dict(length=50, width=50, height=60, weight=10)
    values.update(overrides)
    return ShipmentItem(**values)


AIR_RATE = RateCard(
    rate_type=RateType.AIR_KG,
    buy_price=Decimal("2"),
    currency="OMR",
    margin_percent=Decimal("10"),
)


def test_cbm_of_single_carton():
    assert calculate_cbm([carton()]) == Decimal("0.15")


def test_cbm_sums_quantities():
    assert calculate_cbm([carton(quantity=4), carton(length=100, width=100, height=100)]) == Decimal("1.6")


def test_chargeable_weight_uses_volumetric_when_heavier():
    metrics = calculate_metrics([carton()])
    assert metrics.total_weight == Decimal("10")
    assert metrics.volumetric_weight == Decimal("25")
    assert metrics.chargeable_weight == Decimal("25")


def test_chargeable_weight_uses_actual_when_heavier():
    metrics = calculate_metrics([carton(weight=40)])
    assert metrics.chargeable_weight == Decimal("40")


def test_item_units_are_converted():
    item = ShipmentItem(length=1, width="0.5", height="0.6", weight=22.0462, dimension_unit="m", weight_unit="lb")
    metrics = calculate_metrics([item])
    assert metrics.total_cbm == Decimal("0.3")
    assert metrics.total_weight == Decimal("10.0000")


def test_item_rejects_negative_dimensions():
    with pytest.raises(ValidationFailed):
        carton(length=-1)


def test_item_rejects_zero_quantity():
    with pytest.raises(ValidationFailed):
        carton(quantity=0)


@pytest.mark.parametrize("quantity", [1.7, "2.5", "Infinity"])
def test_item_rejects_fractional_quantity(quantity):
    with pytest.raises(ValidationFailed):
        carton(quantity=quantity)


def test_item_accepts_whole_quantity_as_text():
    assert carton(quantity="3").quantity == 3
    assert carton(quantity=2.0).quantity == 2


def test_air_breakdown_applies_surcharges_then_margin():
    surcharges = [
        SurchargeSpec(SurchargeType.FUEL, Decimal("10"), is_percentage=True),
        SurchargeSpec(SurchargeType.HANDLING, Decimal("3")),
    ]
    breakdown = build_breakdown([carton()], AIR_RATE, ShippingMode.AIR, surcharges)

    assert breakdown.base_rate == Decimal("50.000")
    assert breakdown.surcharges == [("fuel", Decimal("5.000")), ("handling", Decimal("3.000"))]
    assert breakdown.subtotal == Decimal("58.000")
    assert breakdown.margin["amount"] == Decimal("5.800")
    assert breakdown.total == Decimal("63.800")
    assert breakdown.calculations["chargeable_weight"] == Decimal("25")


def test_percentage_surcharge_uses_running_subtotal():
    surcharges = [
        SurchargeSpec(SurchargeType.HANDLING, Decimal("3")),
        SurchargeSpec(SurchargeType.FUEL, Decimal("10"), is_percentage=True),
    ]
    breakdown = build_breakdown([carton()], AIR_RATE, "air", surcharges)
    assert breakdown.surcharges[1] == ("fuel", Decimal("5.300"))
    assert breakdown.subtotal == Decimal("58.300")


def test_flat_margin_overrides_rate_margin():
    margin = MarginSpec(MarginType.FLAT, Decimal("7"))
    breakdown = build_breakdown([carton()], AIR_RATE, "air", margin=margin)
    assert breakdown.margin == {"type": "flat", "value": Decimal("7"), "amount": Decimal("7.000")}
    assert breakdown.total == Decimal("57.000")


def test_min_charge_is_a_floor_on_total():
    rate = RateCard(RateType.AIR_KG, Decimal("2"), "OMR", min_charge=Decimal("100"))
    breakdown = build_breakdown([carton()], rate, "air")
    assert breakdown.subtotal == Decimal("50.000")
    assert breakdown.total == Decimal("100.000")
    assert breakdown.calculations["min_charge"] == Decimal("100.000")


def test_sea_cbm_without_items_charges_minimum():
    rate = RateCard(RateType.SEA_CBM, Decimal("40"), "OMR", min_charge=Decimal("25"))
    breakdown = build_breakdown([], rate, "sea")
    assert breakdown.base_rate == Decimal("0.000")
    assert breakdown.total == Decimal("25.000")


def test_container_rate_bills_per_container():
    rate = RateCard(RateType.SEA_CONTAINER_20, Decimal("800"), "OMR")
    breakdown = build_breakdown([carton()], rate, "sea", container_count=2)
    assert breakdown.base_rate == Decimal("1600.000")
    assert breakdown.calculations["container_count"] == 2
    assert breakdown.calculations["utilization_percent"] == Decimal("0.45")


def test_container_rate_without_items_is_free_before_margin():
    rate = RateCard(RateType.SEA_CONTAINER_40, Decimal("1200"), "OMR")
    breakdown = build_breakdown([], rate, "sea", container_count=3)
    assert breakdown.base_rate == Decimal("0.000")


def test_container_count_must_be_positive():
    rate = RateCard(RateType.SEA_CONTAINER_20, Decimal("800"), "OMR")
    with pytest.raises(ValidationFailed):
        build_breakdown([carton()], rate, "sea", container_count=0)


@pytest.mark.parametrize(
    "mode,rate_type",
    [("air", RateType.SEA_CBM), ("air", RateType.SEA_CONTAINER_40HC), ("sea", RateType.AIR_KG)],
)
def test_mode_and_rate_type_must_agree(mode, rate_type):
    rate = RateCard(rate_type, Decimal("1"), "OMR")
    with pytest.raises(ValidationFailed):
        build_breakdown([carton()], rate, mode)


def test_utilization_is_capped():
    big = carton(length=1000, width=1000, height=1000)
    assert container_utilization([big], RateType.SEA_CONTAINER_20) == Decimal("100.00")


def test_utilization_rejects_non_container_rate():
    with pytest.raises(ValidationFailed):
        container_utilization([carton()], RateType.SEA_CBM)


def test_profit_summary():
    summary = profit_summary(Decimal("58"), Decimal("63.8"))
    assert summary.profit == Decimal("5.8")
    assert summary.margin_percent == Decimal("10.00")
    assert profit_summary(0, 10).margin_percent == Decimal("0")


def test_breakdown_serializes_amounts_as_strings():
    data = build_breakdown([carton()], AIR_RATE, "air").as_dict()
    assert data["base_rate"] == "50.000"
    assert data["currency"] == "OMR"
    assert data["margin"]["type"] == "percentage"


@pytest.mark.asyncio
async def test_quote_service_without_rate_raises():
    service = QuoteService(FakeSession())
    service.agreement_repo = FakeAgreementRepo(None)
    service.surcharge_repo = FakeSurchargeRepo()

    with pytest.raises(NoRateAvailable):
        await service.calculate("CN", "OM", "air", RateType.AIR_KG, [carton()])


@pytest.mark.asyncio
async def test_quote_service_prices_and_saves_quote():
    service = QuoteService(FakeSession())
    service.agreement_repo = FakeAgreementRepo(AIR_RATE)
    service.surcharge_repo = FakeSurchargeRepo([SurchargeSpec(SurchargeType.FUEL, Decimal("10"), is_percentage=True)])
    service.quote_repo = FakeQuoteRepo()

    rate, breakdown = await service.calculate("CN", "OM", "air", "AIR_KG", [carton()])
    assert breakdown.subtotal == Decimal("55.000")
    assert breakdown.total == Decimal("60.500")

    request_id = uuid.uuid4()
    quote = await service.save_quote(request_id, rate, breakdown)
    assert quote.shipment_request_id == request_id
    assert quote.buy_cost == Decimal("55.000")
    assert quote.total_sell_price == Decimal("60.500")
    assert quote.profit_margin_percentage == Decimal("10.00")
    assert quote.breakdown["total"] == "60.500"
    assert service.quote_repo.saved == [quote]


def test_cbm_of_flat_carton():
    assert calculate_cbm([carton(length=100, width=50, height=30)]) == Decimal("0.15")
