import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import InvalidTransition, NotPermitted, ValidationFailed
from app.core.session_context import SessionContext
from app.models.enums import InvoiceStatus, PaymentStatus, RequestPaymentStatus
from app.services.payments import (
    PaymentService,
    from_minor_units,
    to_minor_units,
    validate_amount,
    validate_currency,
    validate_session_id,
    validate_uuid,
)
from app.services.providers.stripe import flatten_form


SESSION_ID = "cs_test_abcdefgh"


class FakeSession:
    pass


class FakeStripe:
    def __init__(self, checkout):
        self.checkout = checkout
        self.created = []

    async def find_or_create_customer(self, email):
        return "cus_123"

    async def create_checkout_session(self, **kwargs):
        self.created.append(kwargs)
        return {"id": "cs_test_abcdefgh", "url": "https://pay.example.com"}

    async def retrieve_checkout_session(self, session_id):
        return self.checkout


class FakePaymentRepo:
    def __init__(self, payments=()):
        self.payments = {payment.stripe_session_id: payment for payment in payments}
        self.saved = []

    async def get_by_session(self, stripe_session_id):
        return self.payments.get(stripe_session_id)

    async def save(self, payment):
        self.saved.append(payment)
        return payment


class FakeRequestRepo:
    def __init__(self, request):
        self.request = request
        self.updated = []

    async def get(self, request_id, customer_id=None):
        if str(self.request.id) != str(request_id) or customer_id != self.request.customer_id:
            return None
        return self.request

    async def update(self, request):
        self.updated.append(request)
        return request


class FakeInvoiceRepo:
    def __init__(self, invoice):
        self.invoice = invoice
        self.saved = []

    async def get(self, invoice_id, customer_id=None):
        return self.invoice if self.invoice.id == invoice_id else None

    async def save(self, invoice):
        self.saved.append(invoice)
        return invoice


def pending_payment(**fields):
    return SimpleNamespace(stripe_session_id=SESSION_ID, status=PaymentStatus.PENDING, paid_at=None, **fields)


def invoice_service(invoice, checkout):
    service = PaymentService(FakeSession(), stripe=FakeStripe(checkout))
    service.payment_repo = FakePaymentRepo([pending_payment(invoice_id=invoice.id)])
    service.invoice_repo = FakeInvoiceRepo(invoice)
    service.invoice_service.invoice_repo = service.invoice_repo
    return service


def wms_invoice(status):
    return SimpleNamespace(
        id=uuid.uuid4(),
        invoice_number="ACME-INV-2026-0001",
        status=status,
        total_amount=Decimal("105.000"),
        paid_at=None,
    )


def test_validate_uuid():
    value = str(uuid.uuid4())
    assert validate_uuid(value) == uuid.UUID(value)
    for bad in (None, 42, "not-a-uuid", value + "0"):
        with pytest.raises(ValidationFailed):
            validate_uuid(bad)


@pytest.mark.parametrize("amount", [0, -5, True, "10", float("nan"), 1_000_000_001])
def test_validate_amount_rejects(amount):
    with pytest.raises(ValidationFailed):
        validate_amount(amount)


def test_validate_amount_accepts():
    assert validate_amount(10.5) == Decimal("10.5")
    assert validate_amount(1_000_000_000) == Decimal("1000000000")


def test_validate_currency_falls_back():
    assert validate_currency("USD") == "usd"
    assert validate_currency("xyz") == "ngn"
    assert validate_currency(None) == "ngn"


def test_validate_session_id():
    assert validate_session_id("cs_test_a1b2c3") == "cs_test_a1b2c3"
    for bad in ("pi_123456789", "cs_1", None):
        with pytest.raises(ValidationFailed):
            validate_session_id(bad)


def test_minor_units_follow_currency():
    assert to_minor_units(Decimal("12.345"), "omr") == 12345
    assert to_minor_units(Decimal("12.345"), "usd") == 1235
    assert from_minor_units(1234, "usd") == Decimal("12.34")
    assert from_minor_units(None, "omr") == Decimal("0")


def test_flatten_form():
    form = flatten_form(
        {
            "mode": "payment",
            "line_items": [{"price_data": {"currency": "omr", "unit_amount": 1500}, "quantity": 1}],
            "metadata": {"user_id": "u1", "skip": None},
            "allow_promotion_codes": False,
        }
    )
    assert form == {
        "mode": "payment",
        "line_items[0][price_data][currency]": "omr",
        "line_items[0][price_data][unit_amount]": "1500",
        "line_items[0][quantity]": "1",
        "metadata[user_id]": "u1",
        "allow_promotion_codes": "false",
    }


@pytest.mark.asyncio
async def test_verify_rejects_foreign_checkout():
    context = SessionContext.build(uuid.uuid4(), "owner@example.com", "customer")
    stripe = FakeStripe({"payment_status": "paid", "metadata": {"user_id": str(uuid.uuid4())}})
    service = PaymentService(FakeSession(), stripe=stripe)

    with pytest.raises(NotPermitted):
        await service.verify_request_payment(context, {"sessionId": "cs_test_a1b2c3"})


@pytest.mark.asyncio
async def test_verify_unpaid_checkout():
    context = SessionContext.build(uuid.uuid4(), "owner@example.com", "customer")
    stripe = FakeStripe({"payment_status": "unpaid", "metadata": {"user_id": str(context.user_id)}})
    service = PaymentService(FakeSession(), stripe=stripe)

    result = await service.verify_invoice_payment(context, {"session_id": "cs_test_a1b2c3"})
    assert result == {"success": False, "paid": False}


@pytest.mark.asyncio
async def test_checkout_needs_email():
    context = SessionContext.build(uuid.uuid4(), None, "customer")
    service = PaymentService(FakeSession(), stripe=FakeStripe({}))
    with pytest.raises(NotPermitted):
        await service.create_request_checkout(context, {"requestId": str(uuid.uuid4()), "amount": 10}, "https://x")


def wms_member():
    return SessionContext.build(uuid.uuid4(), "finance@example.com", "customer", uuid.uuid4(), "accountant")


@pytest.mark.asyncio
async def test_verify_request_payment_marks_request_paid():
    context = SessionContext.build(uuid.uuid4(), "owner@example.com", "customer")
    request = SimpleNamespace(id=uuid.uuid4(), customer_id=context.user_id, payment_status=RequestPaymentStatus.UNPAID)
    checkout = {
        "payment_status": "paid",
        "amount_total": 12345,
        "currency": "omr",
        "payment_intent": "pi_789",
        "payment_method_types": ["card"],
        "metadata": {"user_id": str(context.user_id), "shipment_request_id": str(request.id)},
    }
    service = PaymentService(FakeSession(), stripe=FakeStripe(checkout))
    service.payment_repo = FakePaymentRepo([pending_payment(shipment_request_id=request.id)])
    service.request_repo = FakeRequestRepo(request)

    result = await service.verify_request_payment(context, {"sessionId": SESSION_ID})

    assert result == {"success": True, "paid": True, "amount": 12.345}
    payment = service.payment_repo.saved[0]
    assert payment.status == PaymentStatus.COMPLETED
    assert payment.paid_at is not None
    assert payment.stripe_payment_intent_id == "pi_789"
    assert payment.payment_method == "card"
    assert request.payment_status == RequestPaymentStatus.PAID
    assert service.request_repo.updated == [request]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [InvoiceStatus.SENT, InvoiceStatus.VIEWED, InvoiceStatus.OVERDUE])
async def test_verify_invoice_payment_marks_invoice_paid(status):
    context = wms_member()
    invoice = wms_invoice(status)
    checkout = {
        "payment_status": "paid",
        "metadata": {"user_id": str(context.user_id), "invoice_id": str(invoice.id)},
    }
    service = invoice_service(invoice, checkout)

    result = await service.verify_invoice_payment(context, {"session_id": SESSION_ID})

    assert result == {"success": True, "paid": True, "invoice_id": str(invoice.id)}
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.paid_at is not None
    assert service.payment_repo.saved[0].status == PaymentStatus.COMPLETED


@pytest.mark.asyncio
async def test_verify_draft_invoice_leaves_payment_pending():
    context = wms_member()
    invoice = wms_invoice(InvoiceStatus.DRAFT)
    checkout = {
        "payment_status": "paid",
        "metadata": {"user_id": str(context.user_id), "invoice_id": str(invoice.id)},
    }
    service = invoice_service(invoice, checkout)

    with pytest.raises(InvalidTransition):
        await service.verify_invoice_payment(context, {"session_id": SESSION_ID})

    assert service.payment_repo.saved == []
    assert service.payment_repo.payments[SESSION_ID].status == PaymentStatus.PENDING
    assert invoice.status == InvoiceStatus.DRAFT


@pytest.mark.asyncio
async def test_invoice_checkout_refuses_draft():
    invoice = wms_invoice(InvoiceStatus.DRAFT)
    service = invoice_service(invoice, {})

    with pytest.raises(InvalidTransition):
        await service.create_invoice_checkout(wms_member(), {"invoice_id": str(invoice.id)}, "https://app.example.com")

    assert service.stripe.created == []
    assert service.payment_repo.saved == []


@pytest.mark.asyncio
async def test_invoice_checkout_refuses_paid():
    invoice = wms_invoice(InvoiceStatus.PAID)
    service = invoice_service(invoice, {})

    with pytest.raises(ValidationFailed):
        await service.create_invoice_checkout(wms_member(), {"invoice_id": str(invoice.id)}, "https://app.example.com")


@pytest.mark.asyncio
async def test_invoice_checkout_for_sent_invoice():
    invoice = wms_invoice(InvoiceStatus.SENT)
    service = invoice_service(invoice, {})

    result = await service.create_invoice_checkout(
        wms_member(), {"invoice_id": str(invoice.id)}, "https://app.example.com"
    )

    assert result == {"url": "https://pay.example.com", "sessionId": SESSION_ID}
    assert service.stripe.created[0]["amount_minor"] == 105000
    assert service.stripe.created[0]["currency"] == "omr"
    payment = service.payment_repo.saved[0]
    assert payment.status == PaymentStatus.PENDING
    assert payment.amount == Decimal("105.000")
