import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import ExternalServiceError, NotFound, ValidationFailed
from app.schemas.product_quote import SendProductQuoteRequest
from app.services.product_quotes import (
    ProductQuoteService,
    best_discount,
    compute_product_quote,
    product_quote_number,
    shipping_fee,
    tier_unit_price,
)


class FakeSession:
    pass


class FakeProductRepo:
    def __init__(self, product, quotes_today=0):
        self.product = product
        self.quotes_today = quotes_today
        self.saved = []

    async def get(self, product_id):
        return self.product if self.product and self.product.id == product_id else None

    async def count_quotes_on(self, day):
        return self.quotes_today

    async def save_quote(self, quote):
        self.saved.append(quote)
        return quote


class FakeEmailService:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def deliver(self, recipient, template, subject, html, user_id=None, sender=None):
        if self.fail:
            raise ExternalServiceError("Email delivery failed")
        self.sent.append(SimpleNamespace(recipient=recipient, template=template, subject=subject, html=html))
        return "email_1"


TIERS = [{"minQty": 50, "unitPrice": 9}, {"minQty": 100, "unitPrice": "8"}]


def olive_oil(**overrides):
    values = dict(
        id=uuid.uuid4(),
        name="Olive Oil 1L",
        price=Decimal("10"),
        currency="OMR",
        moq=10,
        pricing_tiers=TIERS,
        tags=[],
        weight_kg=Decimal("2"),
        volume_cbm=Decimal("0.05"),
        lead_time_days=21,
        quote_validity_days=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def send_request(product, **overrides):
    values = {
        "productId": str(product.id),
        "quantity": 60,
        "deliveryCity": "Muscat",
        "deliveryCountry": "Oman",
        "customerName": "Salim",
        "customerEmail": "salim@example.com",
    }
    values.update(overrides)
    return SendProductQuoteRequest.model_validate(values)


def test_tier_unit_price_picks_highest_reached_tier():
    assert tier_unit_price(Decimal("10"), TIERS, 10) == Decimal("10")
    assert tier_unit_price(Decimal("10"), TIERS, 50) == Decimal("9")
    assert tier_unit_price(Decimal("10"), TIERS, 250) == Decimal("8")
    assert tier_unit_price(Decimal("10"), None, 250) == Decimal("10")


def test_shipping_fee_scales_by_city():
    muscat = shipping_fee(Decimal("2"), Decimal("0.05"), "Muscat", "OMR")
    assert (muscat.base_fee, muscat.weight_fee, muscat.volume_fee) == (Decimal("50"), Decimal("4"), Decimal("5"))
    assert muscat.total == Decimal("59.000")
    assert shipping_fee(Decimal("2"), Decimal("0.05"), " salalah ", "OMR").total == Decimal("88.500")
    assert shipping_fee(None, None, "Ibri", "OMR").total == Decimal("70.000")


def test_best_discount():
    assert best_discount(Decimal("100"), 10, [], "OMR") == (None, Decimal("0"))
    assert best_discount(Decimal("100"), 10, ["new"], "OMR") == ("New Product Launch", Decimal("2.000"))
    assert best_discount(Decimal("540"), 60, ["new"], "OMR") == ("Bulk Order (50+ units)", Decimal("16.200"))
    assert best_discount(Decimal("960"), 120, [], "OMR") == ("Bulk Order (100+ units)", Decimal("48.000"))


def test_compute_product_quote_with_tier_and_bulk_discount():
    quote = compute_product_quote(olive_oil(), 60, "Muscat")

    assert quote.unit_price == Decimal("9")
    assert quote.tier_applied
    assert quote.subtotal == Decimal("540.000")
    assert quote.shipping.total == Decimal("59.000")
    assert quote.discount == "Bulk Order (50+ units)"
    assert quote.discount_amount == Decimal("16.200")
    assert quote.total == Decimal("582.800")
    assert quote.eta_days == 21


def test_compute_product_quote_at_base_price():
    quote = compute_product_quote(olive_oil(lead_time_days=None), 10, "Salalah")
    assert not quote.tier_applied
    assert quote.total == Decimal("188.500")
    assert quote.discount is None
    assert quote.eta_days == 14


def test_compute_product_quote_enforces_minimum_order():
    with pytest.raises(ValidationFailed) as exc:
        compute_product_quote(olive_oil(), 5, "Muscat")
    assert exc.value.message == "Minimum order quantity is 10"


def test_quote_serializes_for_clients():
    data = compute_product_quote(olive_oil(), 60, "Muscat").as_dict()
    assert data["unitPrice"] == 9.0
    assert data["shippingFee"] == 59.0
    assert data["total"] == 582.8
    assert data["eta"] == 21
    assert data["breakdown"] == {
        "basePrice": 10.0,
        "tierApplied": True,
        "shippingBreakdown": {"baseFee": 50.0, "weightFee": 4.0, "volumeFee": 5.0, "cityMultiplier": 1.0},
    }


def test_product_quote_number():
    assert product_quote_number(date(2026, 3, 5), 12) == "PQ-20260305-0012"


@pytest.mark.asyncio
async def test_compute_for_unknown_product():
    service = ProductQuoteService(FakeSession(), email_service=FakeEmailService())
    service.product_repo = FakeProductRepo(None)
    with pytest.raises(NotFound):
        await service.compute(uuid.uuid4(), 10, "Muscat")


@pytest.mark.asyncio
async def test_send_stores_quote_and_emails_offer():
    product = olive_oil()
    email = FakeEmailService()
    service = ProductQuoteService(FakeSession(), email_service=email)
    service.product_repo = FakeProductRepo(product, quotes_today=2)

    result = await service.send(send_request(product), now=datetime(2026, 3, 5, 9, tzinfo=timezone.utc))

    assert result == {
        "success": True,
        "quoteId": "PQ-20260305-0003",
        "emailSent": True,
        "message": "Quote sent successfully via email",
    }
    saved = service.product_repo.saved[0]
    assert saved.quote_number == "PQ-20260305-0003"
    assert saved.total_amount == Decimal("582.800")
    assert saved.discount_name == "Bulk Order (50+ units)"
    assert saved.valid_until == date(2026, 3, 12)
    assert saved.status == "sent"
    assert email.sent[0].recipient == "salim@example.com"
    assert email.sent[0].subject == "Your Quote for Olive Oil 1L - Ref PQ-20260305-0003"
    assert "PQ-20260305-0003" in email.sent[0].html
    assert "OMR 540.000" in email.sent[0].html


@pytest.mark.asyncio
async def test_send_without_email_channel():
    product = olive_oil(quote_validity_days=3)
    email = FakeEmailService()
    service = ProductQuoteService(FakeSession(), email_service=email)
    service.product_repo = FakeProductRepo(product)

    result = await service.send(
        send_request(product, preferredChannel="whatsapp"), now=datetime(2026, 3, 5, tzinfo=timezone.utc)
    )

    assert result["message"] == "Quote sent successfully via whatsapp"
    assert result["emailSent"] is False
    assert email.sent == []
    assert service.product_repo.saved[0].valid_until == date(2026, 3, 8)


@pytest.mark.asyncio
async def test_send_keeps_quote_when_email_fails():
    product = olive_oil()
    service = ProductQuoteService(FakeSession(), email_service=FakeEmailService(fail=True))
    service.product_repo = FakeProductRepo(product)

    result = await service.send(send_request(product))

    assert result["success"] is True
    assert result["emailSent"] is False
    assert result["message"] == "Quote saved; email delivery failed"
    assert len(service.product_repo.saved) == 1


@pytest.mark.asyncio
async def test_send_below_minimum_order_stores_nothing():
    product = olive_oil()
    service = ProductQuoteService(FakeSession(), email_service=FakeEmailService())
    service.product_repo = FakeProductRepo(product)

    with pytest.raises(ValidationFailed):
        await service.send(send_request(product, quantity=3))
    assert service.product_repo.saved == []
