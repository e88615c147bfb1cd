import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import Conflict, InvalidTransition, NotFound, ValidationFailed
from app.models.enums import InvoiceStatus, OrderStatus
from app.services.invoicing import (
    InvoiceService,
    apply_transition,
    build_invoice,
    invoice_number,
    render_invoice_html,
)


class FakeSession:
    pass


class FakeInvoiceRepo:
    def __init__(self, invoices=(), existing=None, count=0):
        self.invoices = {invoice.id: invoice for invoice in invoices}
        self.existing = existing
        self.count = count
        self.saved = []
        self.saved_all = []

    async def get(self, invoice_id, customer_id=None):
        return self.invoices.get(invoice_id)

    async def get_by_order(self, order_id):
        return self.existing

    async def count_for_year(self, customer_id, year):
        return self.count

    async def list_past_due(self, today):
        return [invoice for invoice in self.invoices.values() if invoice.due_date < today]

    async def save(self, invoice):
        self.saved.append(invoice)
        return invoice

    async def save_all(self, invoices):
        self.saved_all.extend(invoices)


class FakeProfileRepo:
    def __init__(self, customer):
        self.customer = customer

    async def get_customer(self, customer_id):
        return self.customer


def customer(vat_exempt=False):
    return SimpleNamespace(
        id=uuid.uuid4(),
        customer_code="ACME",
        company_name="Acme Trading LLC",
        vatin="OM1100223344",
        vat_exempt=vat_exempt,
    )


def approved_order(status=OrderStatus.APPROVED):
    return SimpleNamespace(
        id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        status=status,
        items=[
            SimpleNamespace(product_name="Olive Oil 1L", quantity=4, price_per_unit=Decimal("20")),
            SimpleNamespace(product_name="Dates 500g", quantity=10, price_per_unit=Decimal("2")),
        ],
    )


def sent_invoice(due_date=date(2026, 1, 31), status=InvoiceStatus.SENT):
    return SimpleNamespace(id=uuid.uuid4(), status=status, due_date=due_date, sent_at=None, viewed_at=None, paid_at=None)


def test_invoice_number_format():
    assert invoice_number("ACME", 2026, 7) == "ACME-INV-2026-0007"


def test_build_invoice_adds_tax():
    order = approved_order()
    invoice = build_invoice(order, customer(), 3, date(2026, 2, 10), "OMR", Decimal("5"), 30)

    assert invoice.invoice_number == "ACME-INV-2026-0003"
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.subtotal == Decimal("100.000")
    assert invoice.tax_amount == Decimal("5.000")
    assert invoice.total_amount == Decimal("105.000")
    assert invoice.due_date == date(2026, 3, 12)
    assert [item.total_price for item in invoice.items] == [Decimal("80.000"), Decimal("20.000")]


def test_vat_exempt_customer_pays_no_tax():
    invoice = build_invoice(approved_order(), customer(vat_exempt=True), 1, date(2026, 2, 10), "OMR", Decimal("5"), 30)
    assert invoice.vat_exempt
    assert invoice.tax_amount == Decimal("0.000")
    assert invoice.total_amount == Decimal("100.000")


def test_pending_order_cannot_be_invoiced():
    with pytest.raises(ValidationFailed):
        build_invoice(approved_order(OrderStatus.PENDING_APPROVAL), customer(), 1, date(2026, 2, 10), "OMR", 5, 30)


def test_transition_stamps_time():
    invoice = sent_invoice(status=InvoiceStatus.DRAFT)
    now = datetime(2026, 2, 11, tzinfo=timezone.utc)
    apply_transition(invoice, InvoiceStatus.SENT, now=now)
    assert invoice.status == InvoiceStatus.SENT
    assert invoice.sent_at == now


def test_draft_cannot_jump_to_paid():
    invoice = sent_invoice(status=InvoiceStatus.DRAFT)
    with pytest.raises(InvalidTransition):
        apply_transition(invoice, InvoiceStatus.PAID)


def test_overdue_needs_system_flag():
    invoice = sent_invoice()
    with pytest.raises(InvalidTransition):
        apply_transition(invoice, InvoiceStatus.OVERDUE)
    apply_transition(invoice, InvoiceStatus.OVERDUE, system=True)
    assert invoice.status == InvoiceStatus.OVERDUE


def test_render_invoice_html():
    cust = customer()
    invoice = build_invoice(approved_order(), cust, 1, date(2026, 2, 10), "OMR", Decimal("5"), 30)
    html = render_invoice_html(invoice, cust)
    assert "ACME-INV-2026-0001" in html
    assert "Tax (5%)" in html
    assert "OMR 105.000" in html
    assert "OM1100223344" in html


@pytest.mark.asyncio
async def test_create_from_order_uses_next_sequence():
    service = InvoiceService(FakeSession())
    service.invoice_repo = FakeInvoiceRepo(count=2)
    service.profile_repo = FakeProfileRepo(customer())

    invoice = await service.create_from_order(approved_order(), date(2026, 5, 1))

    assert invoice.invoice_number == "ACME-INV-2026-0003"
    assert service.invoice_repo.saved == [invoice]


@pytest.mark.asyncio
async def test_order_is_invoiced_once():
    service = InvoiceService(FakeSession())
    service.invoice_repo = FakeInvoiceRepo(existing=SimpleNamespace(id=uuid.uuid4()))
    service.profile_repo = FakeProfileRepo(customer())

    with pytest.raises(Conflict):
        await service.create_from_order(approved_order())


@pytest.mark.asyncio
async def test_mark_overdue_only_touches_past_due():
    late = sent_invoice(due_date=date(2026, 1, 31))
    current = sent_invoice(due_date=date(2026, 3, 31))
    service = InvoiceService(FakeSession())
    service.invoice_repo = FakeInvoiceRepo([late, current])

    updated = await service.mark_overdue(date(2026, 2, 15))

    assert updated == [late]
    assert late.status == InvoiceStatus.OVERDUE
    assert current.status == InvoiceStatus.SENT
    assert service.invoice_repo.saved_all == [late]


@pytest.mark.asyncio
async def test_mark_paid_is_idempotent():
    invoice = sent_invoice(status=InvoiceStatus.OVERDUE)
    service = InvoiceService(FakeSession())
    service.invoice_repo = FakeInvoiceRepo([invoice])

    await service.mark_paid(invoice.id)
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.paid_at is not None

    await service.mark_paid(invoice.id)
    assert len(service.invoice_repo.saved) == 1

    with pytest.raises(NotFound):
        await service.mark_paid(uuid.uuid4())
