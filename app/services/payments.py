"""Checkout sessions for shipment requests and WMS invoices.

Nothing the payment processor says is passed to the client: every failure on this
path surfaces as a generic message and is logged here with the detail.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidTransition, NotFound, NotPermitted, ValidationFailed
from app.core.logging import get_logger
from app.core.session_context import SessionContext
from app.models.enums import InvoiceStatus, PaymentStatus, RequestPaymentStatus, ShippingMode
from app.models.payment import Payment
from app.repositories.invoice_repo import InvoiceRepository
from app.repositories.payment_repo import PaymentRepository
from app.repositories.shipment_request_repo import ShipmentRequestRepository
from app.services.invoicing import InvoiceService, ensure_payable
from app.services.money import minor_units
from app.services.providers.stripe import StripeClient

logger = get_logger()

ALLOWED_CURRENCIES = ("ngn", "usd", "omr", "eur", "gbp")
DEFAULT_CURRENCY = "ngn"
INVOICE_CURRENCY = "omr"
MAX_AMOUNT = Decimal("1000000000")

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def validate_uuid(value: Any) -> uuid.UUID:
    if not isinstance(value, str) or not _UUID_RE.match(value):
        raise ValidationFailed("Invalid input")
    return uuid.UUID(value)


def validate_amount(value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationFailed("Invalid input")
    amount = Decimal(str(value))
    if not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
        raise ValidationFailed("Invalid input")
    return amount


def validate_currency(value: Any) -> str:
    if not isinstance(value, str) or value.lower() not in ALLOWED_CURRENCIES:
        return DEFAULT_CURRENCY
    return value.lower()


def validate_session_id(value: Any) -> str:
    if not isinstance(value, str) or not value.startswith("cs_") or not 10 <= len(value) <= 500:
        raise ValidationFailed("Invalid input")
    return value


def to_minor_units(amount: Decimal, currency: str) -> int:
    factor = Decimal(10) ** minor_units(currency)
    return int((amount * factor).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int | None, currency: str) -> Decimal:
    if not amount:
        return Decimal("0")
    return Decimal(amount) / (Decimal(10) ** minor_units(currency))


class PaymentService:
    def __init__(self, session: AsyncSession, stripe: StripeClient | None = None) -> None:
        self.session = session
        self.stripe = stripe or StripeClient()
        self.payment_repo = PaymentRepository(session)
        self.request_repo = ShipmentRequestRepository(session)
        self.invoice_repo = InvoiceRepository(session)
        self.invoice_service = InvoiceService(session)

    async def create_request_checkout(self, context: SessionContext, body: dict, origin: str) -> dict[str, str]:
        if not context.email:
            raise NotPermitted("User email missing")
        request_id = validate_uuid(body.get("requestId"))
        amount = validate_amount(body.get("amount"))
        currency = validate_currency(body.get("currency"))

        request = await self.request_repo.get(request_id, customer_id=context.user_id)
        if request is None:
            raise NotFound("Shipment request not found")

        customer_id = await self.stripe.find_or_create_customer(context.email)
        checkout = await self.stripe.create_checkout_session(
            customer_id=customer_id,
            amount_minor=to_minor_units(amount, currency),
            currency=currency,
            product_name=f"Shipment - {ShippingMode(request.shipping_mode).value.upper()}",
            description="Payment for shipment request",
            success_url=f"{origin}/dashboard?payment=success&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/dashboard?payment=canceled",
            metadata={"shipment_request_id": str(request_id), "user_id": str(context.user_id)},
        )
        await self.payment_repo.save(
            Payment(
                customer_id=context.user_id,
                shipment_request_id=request_id,
                stripe_customer_id=customer_id,
                stripe_session_id=checkout["id"],
                amount=amount,
                currency=currency.upper(),
                status=PaymentStatus.PENDING,
            )
        )
        logger.info("checkout_created", shipment_request_id=str(request_id), session_id=checkout["id"])
        return {"url": checkout["url"], "sessionId": checkout["id"]}

    async def create_invoice_checkout(self, context: SessionContext, body: dict, origin: str) -> dict[str, str]:
        if not context.email:
            raise NotPermitted("User email missing")
        invoice_id = validate_uuid(body.get("invoice_id") or body.get("invoiceId"))
        invoice = await self.invoice_repo.get(invoice_id, customer_id=context.customer_scope())
        if invoice is None:
            raise NotFound("Invoice not found")
        ensure_payable(invoice)

        amount = Decimal(invoice.total_amount)
        customer_id = await self.stripe.find_or_create_customer(context.email)
        checkout = await self.stripe.create_checkout_session(
            customer_id=customer_id,
            amount_minor=to_minor_units(amount, INVOICE_CURRENCY),
            currency=INVOICE_CURRENCY,
            product_name=f"Invoice {invoice.invoice_number}",
            description="WMS invoice payment",
            success_url=f"{origin}/warehouse/invoices?payment=success&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/warehouse/invoices?payment=cancelled",
            metadata={
                "invoice_id": str(invoice.id),
                "invoice_number": invoice.invoice_number,
                "user_id": str(context.user_id),
            },
        )
        await self.payment_repo.save(
            Payment(
                customer_id=context.user_id,
                invoice_id=invoice.id,
                stripe_customer_id=customer_id,
                stripe_session_id=checkout["id"],
                amount=amount,
                currency=INVOICE_CURRENCY.upper(),
                status=PaymentStatus.PENDING,
            )
        )
        logger.info("invoice_checkout_created", invoice_id=str(invoice.id), session_id=checkout["id"])
        return {"url": checkout["url"], "sessionId": checkout["id"]}

    async def _retrieve_owned(self, context: SessionContext, session_id: str) -> dict:
        checkout = await self.stripe.retrieve_checkout_session(session_id)
        owner = (checkout.get("metadata") or {}).get("user_id")
        if not owner or owner != str(context.user_id):
            logger.warning("checkout_owner_mismatch", session_id=session_id)
            raise NotPermitted("Checkout session belongs to another user")
        return checkout

    async def _complete_payment(self, session_id: str, checkout: dict) -> Payment | None:
        payment = await self.payment_repo.get_by_session(session_id)
        if payment is None:
            logger.warning("payment_row_missing", session_id=session_id)
            return None
        payment.status = PaymentStatus.COMPLETED
        payment.paid_at = datetime.now(timezone.utc)
        payment.stripe_payment_intent_id = checkout.get("payment_intent")
        methods = checkout.get("payment_method_types") or []
        payment.payment_method = methods[0] if methods else None
        return await self.payment_repo.save(payment)

    async def verify_request_payment(self, context: SessionContext, body: dict) -> dict[str, Any]:
        session_id = validate_session_id(body.get("sessionId"))
        checkout = await self._retrieve_owned(context, session_id)
        if checkout.get("payment_status") != "paid":
            return {"success": False, "paid": False}

        request_id = (checkout.get("metadata") or {}).get("shipment_request_id")
        if not request_id:
            raise ValidationFailed("Invalid session")
        request = await self.request_repo.get(request_id, customer_id=context.user_id)
        if request is None:
            raise NotFound("Shipment request not found")

        await self._complete_payment(session_id, checkout)
        request.payment_status = RequestPaymentStatus.PAID
        await self.request_repo.update(request)

        currency = checkout.get("currency") or DEFAULT_CURRENCY
        amount = from_minor_units(checkout.get("amount_total"), currency)
        logger.info("payment_verified", shipment_request_id=str(request_id), session_id=session_id)
        return {"success": True, "paid": True, "amount": float(amount)}

    async def verify_invoice_payment(self, context: SessionContext, body: dict) -> dict[str, Any]:
        session_id = validate_session_id(body.get("session_id") or body.get("sessionId"))
        checkout = await self._retrieve_owned(context, session_id)
        invoice_id = (checkout.get("metadata") or {}).get("invoice_id")
        if checkout.get("payment_status") != "paid" or not invoice_id:
            return {"success": False, "paid": False}

        invoice = await self.invoice_repo.get(uuid.UUID(invoice_id))
        if invoice is None:
            raise NotFound("Invoice not found")
        if InvoiceStatus(invoice.status) != InvoiceStatus.PAID:
            try:
                ensure_payable(invoice)
            except InvalidTransition:
                logger.warning("paid_checkout_for_unpayable_invoice", invoice_id=invoice_id, session_id=session_id)
                raise

        await self._complete_payment(session_id, checkout)
        invoice = await self.invoice_service.mark_paid(invoice.id)
        logger.info("invoice_payment_verified", invoice_id=invoice_id, session_id=session_id)
        return {"success": True, "paid": True, "invoice_id": str(invoice.id)}
