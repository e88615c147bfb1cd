"""JSON endpoints ported from the hosted platform's edge functions.

Every handler runs under :func:`sanitized`: application errors keep their status and
client message, anything else is logged and answered with a fixed per-function
message. CORS pre-flight for this prefix is answered in ``app.main``.
"""

from __future__ import annotations

import functools
from decimal import Decimal, InvalidOperation

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.core.deps import get_db_session, get_session_context, require_admin, require_staff
from app.core.errors import AppError, Conflict, NotFound, NotPermitted, ValidationFailed, error_response
from app.core.logging import get_logger
from app.core.rate_limit import functions_rate_limiter
from app.core.session_context import SessionContext
from app.models.enums import InvoiceStatus, ShippingMode
from app.repositories.invoice_repo import InvoiceRepository
from app.repositories.partner_repo import PartnerRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.product_quote import ProductQuoteRequest, SendProductQuoteRequest
from app.services.content_enhancer import enhance_product
from app.services.inventory_import import InventoryImporter
from app.services.invoicing import InvoiceService, render_invoice_html
from app.services.money import format_money, to_decimal
from app.services.notifications import EmailService, PushService
from app.services.payments import PaymentService, validate_uuid
from app.services.product_quotes import ProductQuoteService
from app.services.product_scraper import ProductScraper
from app.services.providers.carriers import quote_carriers
from app.services.templates import render

logger = get_logger()


async def rate_limited(request: Request) -> None:
    functions_rate_limiter.check(request)


router = APIRouter(prefix="/functions", tags=["functions"], dependencies=[Depends(rate_limited)])


def sanitized(function_name: str, fallback: str = "Unable to process request"):
    def decorator(handler):
        @functools.wraps(handler)
        async def wrapper(*args, **kwargs):
            try:
                return await handler(*args, **kwargs)
            except AppError as exc:
                logger.warning(
                    "function_error",
                    function=function_name,
                    error=type(exc).__name__,
                    message=exc.message,
                )
                details = exc.details if isinstance(exc, ValidationFailed) else None
                return error_response(exc.status_code, exc.client_message, details)
            except HTTPException as exc:
                return error_response(exc.status_code, str(exc.detail))
            except Exception:
                logger.exception("function_failed", function=function_name)
                return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, fallback)

        return wrapper

    return decorator


def _origin(request: Request) -> str:
    return (request.headers.get("origin") or get_settings().public_app_url).rstrip("/")


def _non_negative(value, name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationFailed("Invalid input", details={"field": name})
    try:
        number = to_decimal(value if value is not None else 0)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationFailed("Invalid input", details={"field": name}) from exc
    if not number.is_finite() or number < 0:
        raise ValidationFailed("Invalid input", details={"field": name})
    return number


@router.post("/create-payment")
@sanitized("create-payment", "Unable to create payment session")
async def create_payment(
    request: Request,
    body: dict = Body(...),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    return await PaymentService(session).create_request_checkout(context, body, _origin(request))


@router.post("/create-invoice-payment")
@sanitized("create-invoice-payment", "Unable to create payment session")
async def create_invoice_payment(
    request: Request,
    body: dict = Body(...),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    return await PaymentService(session).create_invoice_checkout(context, body, _origin(request))


@router.post("/verify-payment")
@sanitized("verify-payment", "Payment verification failed")
async def verify_payment(
    body: dict = Body(...),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    return await PaymentService(session).verify_request_payment(context, body)


@router.post("/verify-invoice-payment")
@sanitized("verify-invoice-payment", "Payment verification failed")
async def verify_invoice_payment(
    body: dict = Body(...),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    return await PaymentService(session).verify_invoice_payment(context, body)


@router.post("/send-notification-email")
@sanitized("send-notification-email", "Failed to send email")
async def send_notification_email(
    body: dict = Body(...),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    recipient_id = validate_uuid(body.get("recipientUserId"))
    template = body.get("templateType")
    subject = body.get("subject")
    if not isinstance(template, str) or not isinstance(subject, str) or not subject.strip():
        raise ValidationFailed("Invalid input")
    if recipient_id != context.user_id and not context.is_staff:
        raise NotPermitted("Cannot email other users")

    metadata = body.get("metadata") if isinstance(body.get("metadata"), dict) else {}
    result = await EmailService(session).send_to_user(recipient_id, template, subject.strip(), metadata)
    return {"success": True, **result}


@router.post("/send-invoice-email")
@sanitized("send-invoice-email", "Failed to send invoice email")
async def send_invoice_email(
    body: dict = Body(...),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    context.require("can_manage_invoices")
    invoice_id = validate_uuid(body.get("invoiceId") or body.get("invoice_id"))
    invoice = await InvoiceRepository(session).get(invoice_id, customer_id=context.customer_scope())
    if invoice is None:
        raise NotFound("Invoice not found")
    customer = await ProfileRepository(session).get_customer(invoice.customer_id)
    if customer is None:
        raise NotFound("Customer not found")

    recipient = body.get("recipientEmail") or customer.email
    if not isinstance(recipient, str) or "@" not in recipient:
        raise ValidationFailed("Missing required parameters: invoiceId and recipientEmail")

    settings = get_settings()
    email_id = await EmailService(session).deliver(
        recipient,
        "invoice_ready",
        f"Tax Invoice {invoice.invoice_number}",
        render_invoice_html(invoice, customer),
        user_id=context.user_id,
        sender=settings.invoice_email_from,
    )
    if InvoiceStatus(invoice.status) == InvoiceStatus.DRAFT:
        await InvoiceService(session).transition(invoice, InvoiceStatus.SENT)
    return {"success": True, "emailId": email_id, "message": "Invoice email sent successfully"}


@router.post("/send-partner-payment-notification")
@sanitized("send-partner-payment-notification", "Failed to send notification")
async def send_partner_payment_notification(
    body: dict = Body(...),
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    partner_id = validate_uuid(body.get("partner_id"))
    reference = body.get("payment_reference")
    if not isinstance(reference, str) or not reference:
        raise ValidationFailed("Invalid input")
    amount = _non_negative(body.get("total_amount"), "total_amount")
    invoice_count = body.get("invoice_count") or 0

    partner = await PartnerRepository(session).get(partner_id)
    if partner is None:
        raise NotFound("Partner not found")
    if not partner.email:
        raise ValidationFailed("Partner email not found")

    html = render(
        "partner_payment",
        name=partner.company_name,
        reference=reference,
        amount=format_money(amount, "OMR"),
        invoice_count=invoice_count,
        url=f"{get_settings().public_app_url}/partner-dashboard#payments",
    )
    await EmailService(session).deliver(
        partner.email,
        "partner_payment",
        f"Payment Confirmation Required - {reference}",
        html,
        user_id=partner.user_id,
    )
    logger.info("partner_payment_notified", partner_id=str(partner_id), payment_id=body.get("payment_id"))
    return {"success": True, "message": "Notification sent successfully"}


@router.post("/send-push-notification")
@sanitized("send-push-notification", "Failed to send push notification")
async def send_push_notification(
    body: dict = Body(...),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    user_id = validate_uuid(body.get("userId"))
    title = body.get("title")
    message = body.get("body")
    if not isinstance(title, str) or not isinstance(message, str):
        raise ValidationFailed("Invalid input")
    if user_id != context.user_id and not context.is_staff:
        raise NotPermitted("Cannot notify other users")

    results = await PushService(session).send(user_id, title, message, body.get("icon"), body.get("url"))
    if not results:
        return {"message": "No subscriptions found", "total": 0, "success": 0, "results": []}
    return {
        "message": "Push notifications sent",
        "total": len(results),
        "success": sum(1 for result in results if result.success),
        "results": [result.as_dict() for result in results],
    }


@router.post("/import-inventory-excel")
@sanitized("import-inventory-excel", "Failed to import inventory")
async def import_inventory_excel(
    file: UploadFile = File(...),
    customer_id: str = Form(..., alias="customerId"),
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    target = validate_uuid(customer_id)
    scope = context.customer_scope()
    if scope is not None:
        if scope != target:
            raise NotPermitted("Customer mismatch")
        context.require("can_create_orders")

    content = await file.read()
    result = await InventoryImporter(session).import_file(target, content, file.filename or "")
    return {"success": True, **result.as_dict()}


@router.post("/scrape-alibaba-product")
@sanitized("scrape-alibaba-product", "Failed to scrape product")
async def scrape_alibaba_product(
    body: dict = Body(...),
    context: SessionContext = Depends(require_admin),
    session=Depends(get_db_session),
):
    return await ProductScraper(session).scrape(body.get("url"))


@router.post("/enhance-product-content")
@sanitized("enhance-product-content", "Failed to enhance product")
async def enhance_product_content(
    body: dict = Body(...),
    context: SessionContext = Depends(require_admin),
):
    enhanced = await enhance_product(body.get("product"))
    return {"success": True, "enhanced": enhanced}


@router.post("/delete-wms-user")
@sanitized("delete-wms-user")
async def delete_wms_user(
    body: dict = Body(...),
    context: SessionContext = Depends(require_admin),
    session=Depends(get_db_session),
):
    if not body.get("user_id"):
        return error_response(status.HTTP_400_BAD_REQUEST, "User ID is required")
    user_id = validate_uuid(body.get("user_id"))
    if user_id == context.user_id:
        raise ValidationFailed("Cannot delete your own account")

    try:
        deleted = await ProfileRepository(session).delete_user(user_id)
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("Cannot delete user with existing references") from exc
    if not deleted:
        raise NotFound("User not found")
    logger.info("wms_user_deleted", user_id=str(user_id), deleted_by=str(context.user_id))
    return {"success": True, "message": "User deleted successfully"}


@router.post("/get-shipping-rates")
@sanitized("get-shipping-rates", "Failed to fetch shipping rates")
async def get_shipping_rates(body: dict = Body(...)):
    if not body.get("origin") or not body.get("destination"):
        raise ValidationFailed("Invalid input")
    try:
        mode = ShippingMode(str(body.get("shippingType") or "").lower())
    except ValueError as exc:
        raise ValidationFailed("Invalid input") from exc
    weight = _non_negative(body.get("weight"), "weight")
    volume = _non_negative(body.get("volume"), "volume")
    return {"success": True, "rates": quote_carriers(mode, weight, volume)}


@router.post("/compute-product-quote")
@sanitized("compute-product-quote", "Failed to compute quote")
async def compute_product_quote(payload: ProductQuoteRequest, session=Depends(get_db_session)):
    quote = await ProductQuoteService(session).compute(payload.product_id, payload.quantity, payload.delivery_city)
    return quote.as_dict()


@router.post("/send-product-quote")
@sanitized("send-product-quote", "Failed to send quote")
async def send_product_quote(payload: SendProductQuoteRequest, session=Depends(get_db_session)):
    return await ProductQuoteService(session).send(payload)
