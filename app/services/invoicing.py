from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import Conflict, InvalidTransition, NotFound, ValidationFailed
from app.core.logging import get_logger
from app.models.enums import InvoiceStatus, OrderStatus
from app.models.invoice import WmsInvoice, WmsInvoiceItem
from app.repositories.invoice_repo import InvoiceRepository
from app.repositories.profile_repo import ProfileRepository
from app.services.money import compute_tax, round_money, to_decimal
from app.services.templates import render
from app.services.workflow import INVOICE_WORKFLOW

logger = get_logger()

INVOICEABLE_ORDER_STATUSES = {
    OrderStatus.APPROVED,
    OrderStatus.IN_PROGRESS,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
}

_STATUS_STAMPS = {
    InvoiceStatus.SENT: "sent_at",
    InvoiceStatus.VIEWED: "viewed_at",
    InvoiceStatus.PAID: "paid_at",
}


def invoice_number(customer_code: str, year: int, sequence: int) -> str:
    return f"{customer_code}-INV-{year}-{sequence:04d}"


def build_invoice(
    order,
    customer,
    sequence: int,
    invoice_date: date,
    currency: str,
    vat_rate_percent,
    due_days: int,
) -> WmsInvoice:
    """Invoice for ``order`` without touching storage."""
    if OrderStatus(order.status) not in INVOICEABLE_ORDER_STATUSES:
        raise ValidationFailed("Only approved orders can be invoiced")

    items = [
        WmsInvoiceItem(
            description=line.product_name,
            quantity=line.quantity,
            unit_price=round_money(line.price_per_unit, currency),
            total_price=round_money(to_decimal(line.price_per_unit) * line.quantity, currency),
        )
        for line in order.items
    ]
    subtotal = round_money(sum((item.total_price for item in items), to_decimal(0)), currency)
    vat_exempt = bool(customer.vat_exempt)
    tax = compute_tax(subtotal, 0 if vat_exempt else vat_rate_percent, currency)

    return WmsInvoice(
        invoice_number=invoice_number(customer.customer_code, invoice_date.year, sequence),
        order_id=order.id,
        customer_id=order.customer_id,
        status=InvoiceStatus.DRAFT,
        subtotal=subtotal,
        tax_rate=tax.rate,
        tax_amount=tax.amount,
        total_amount=tax.total,
        currency=currency,
        vat_exempt=vat_exempt,
        invoice_date=invoice_date,
        due_date=invoice_date + timedelta(days=due_days),
        items=items,
    )


def apply_transition(invoice, target: InvoiceStatus, *, system: bool = False, now: datetime | None = None) -> None:
    INVOICE_WORKFLOW.assert_transition(invoice.status, target, system=system)
    invoice.status = target
    stamp = _STATUS_STAMPS.get(target)
    if stamp:
        setattr(invoice, stamp, now or datetime.now(timezone.utc))


def ensure_payable(invoice) -> None:
    status = InvoiceStatus(invoice.status)
    if status == InvoiceStatus.PAID:
        raise ValidationFailed("Invoice already paid")
    if not INVOICE_WORKFLOW.can_transition(status, InvoiceStatus.PAID):
        raise InvalidTransition(f"Invoice in status {status.value} cannot be paid")


def render_invoice_html(invoice, customer) -> str:
    tax = compute_tax(invoice.subtotal, invoice.tax_rate, invoice.currency)
    return render(
        "invoice_ready",
        invoice=invoice,
        items=list(getattr(invoice, "items", None) or []),
        customer_name=customer.company_name,
        vatin=customer.vatin,
        vendor_vatin=get_settings().vendor_vatin,
        tax_label=tax.label,
    )


class InvoiceService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.invoice_repo = InvoiceRepository(session)
        self.profile_repo = ProfileRepository(session)

    async def create_from_order(self, order, invoice_date: date | None = None) -> WmsInvoice:
        if await self.invoice_repo.get_by_order(order.id) is not None:
            raise Conflict("Order already invoiced")
        customer = await self.profile_repo.get_customer(order.customer_id)
        if customer is None:
            raise NotFound("Customer not found")

        settings = get_settings()
        invoice_date = invoice_date or date.today()
        sequence = await self.invoice_repo.count_for_year(customer.id, invoice_date.year) + 1
        invoice = build_invoice(
            order,
            customer,
            sequence,
            invoice_date,
            settings.default_currency,
            settings.vat_rate_percent,
            settings.invoice_due_days,
        )
        invoice = await self.invoice_repo.save(invoice)
        logger.info("invoice_created", invoice_id=str(invoice.id), invoice_number=invoice.invoice_number)
        return invoice

    async def transition(self, invoice: WmsInvoice, target: InvoiceStatus) -> WmsInvoice:
        apply_transition(invoice, target)
        return await self.invoice_repo.save(invoice)

    async def mark_paid(self, invoice_id: uuid.UUID) -> WmsInvoice:
        invoice = await self.invoice_repo.get(invoice_id)
        if invoice is None:
            raise NotFound("Invoice not found")
        if InvoiceStatus(invoice.status) == InvoiceStatus.PAID:
            return invoice
        return await self.transition(invoice, InvoiceStatus.PAID)

    async def mark_overdue(self, today: date | None = None) -> list[WmsInvoice]:
        today = today or date.today()
        invoices = await self.invoice_repo.list_past_due(today)
        for invoice in invoices:
            apply_transition(invoice, InvoiceStatus.OVERDUE, system=True)
        if invoices:
            await self.invoice_repo.save_all(invoices)
        logger.info("invoices_marked_overdue", count=len(invoices), today=today.isoformat())
        return invoices
