"""Instant quotes for catalogue products.

The unit price comes from the product's highest pricing tier the quantity reaches.
Delivery is a base fee plus weight and volume charges, scaled by the destination
city. At most one discount applies: the larger of the bulk and new-product offers.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ExternalServiceError, NotFound, ValidationFailed
from app.core.logging import get_logger
from app.models.product import ProductQuote
from app.repositories.product_repo import ProductRepository
from app.schemas.product_quote import SendProductQuoteRequest
from app.services.money import round_money, to_decimal
from app.services.notifications import EmailService
from app.services.templates import render

logger = get_logger()

BASE_SHIPPING_FEE = Decimal("50")
SHIPPING_FEE_PER_KG = Decimal("2")
SHIPPING_FEE_PER_CBM = Decimal("100")
CITY_MULTIPLIERS = {
    "muscat": Decimal("1.0"),
    "salalah": Decimal("1.5"),
    "sohar": Decimal("1.2"),
    "nizwa": Decimal("1.3"),
}
DEFAULT_CITY_MULTIPLIER = Decimal("1.4")

# (minimum quantity, percent, label), largest threshold first
BULK_DISCOUNTS = (
    (100, Decimal("5"), "Bulk Order (100+ units)"),
    (50, Decimal("3"), "Bulk Order (50+ units)"),
)
NEW_PRODUCT_TAG = "new"
NEW_PRODUCT_DISCOUNT = (Decimal("2"), "New Product Launch")

DEFAULT_LEAD_TIME_DAYS = 14
DEFAULT_VALIDITY_DAYS = 7


@dataclass(frozen=True)
class ShippingFee:
    base_fee: Decimal
    weight_fee: Decimal
    volume_fee: Decimal
    city_multiplier: Decimal
    total: Decimal


@dataclass(frozen=True)
class ProductQuoteResult:
    product_id: uuid.UUID
    quantity: int
    base_price: Decimal
    unit_price: Decimal
    subtotal: Decimal
    shipping: ShippingFee
    discount: str | None
    discount_amount: Decimal
    total: Decimal
    eta_days: int
    currency: str

    @property
    def tier_applied(self) -> bool:
        return self.unit_price != self.base_price

    def breakdown(self) -> dict[str, Any]:
        return {
            "basePrice": float(self.base_price),
            "tierApplied": self.tier_applied,
            "shippingBreakdown": {
                "baseFee": float(self.shipping.base_fee),
                "weightFee": float(self.shipping.weight_fee),
                "volumeFee": float(self.shipping.volume_fee),
                "cityMultiplier": float(self.shipping.city_multiplier),
            },
        }

    def as_dict(self) -> dict[str, Any]:
        return {
            "productId": str(self.product_id),
            "quantity": self.quantity,
            "unitPrice": float(self.unit_price),
            "subtotal": float(self.subtotal),
            "shippingFee": float(self.shipping.total),
            "discount": self.discount,
            "discountAmount": float(self.discount_amount),
            "total": float(self.total),
            "eta": self.eta_days,
            "currency": self.currency,
            "breakdown": self.breakdown(),
        }


def tier_unit_price(base_price, tiers: Iterable[dict] | None, quantity: int) -> Decimal:
    """Unit price of the highest tier whose ``minQty`` the quantity reaches, else ``base_price``."""
    for tier in sorted(tiers or [], key=lambda tier: int(tier["minQty"]), reverse=True):
        if quantity >= int(tier["minQty"]):
            return to_decimal(tier["unitPrice"])
    return to_decimal(base_price)


def shipping_fee(weight_kg, volume_cbm, delivery_city: str, currency: str) -> ShippingFee:
    weight_fee = to_decimal(weight_kg) * SHIPPING_FEE_PER_KG
    volume_fee = to_decimal(volume_cbm) * SHIPPING_FEE_PER_CBM
    multiplier = CITY_MULTIPLIERS.get(delivery_city.strip().lower(), DEFAULT_CITY_MULTIPLIER)
    total = (BASE_SHIPPING_FEE + weight_fee + volume_fee) * multiplier
    return ShippingFee(
        base_fee=BASE_SHIPPING_FEE,
        weight_fee=round_money(weight_fee, currency),
        volume_fee=round_money(volume_fee, currency),
        city_multiplier=multiplier,
        total=round_money(total, currency),
    )


def best_discount(
    subtotal: Decimal, quantity: int, tags: Iterable[str] | None, currency: str
) -> tuple[str | None, Decimal]:
    candidates: list[tuple[Decimal, str]] = []
    for threshold, percent, label in BULK_DISCOUNTS:
        if quantity >= threshold:
            candidates.append((percent, label))
            break
    if NEW_PRODUCT_TAG in (tags or []):
        candidates.append(NEW_PRODUCT_DISCOUNT)
    if not candidates:
        return None, round_money(0, currency)
    # max() keeps the first of equal offers, so bulk wins a tie
    percent, label = max(candidates, key=lambda candidate: candidate[0])
    return label, round_money(subtotal * percent / Decimal("100"), currency)


def compute_product_quote(product, quantity: int, delivery_city: str) -> ProductQuoteResult:
    if quantity < 1:
        raise ValidationFailed("quantity must be >= 1")
    minimum = product.moq or 1
    if quantity < minimum:
        raise ValidationFailed(f"Minimum order quantity is {minimum}")

    currency = product.currency
    unit_price = tier_unit_price(product.price, product.pricing_tiers, quantity)
    subtotal = round_money(unit_price * quantity, currency)
    shipping = shipping_fee(product.weight_kg, product.volume_cbm, delivery_city, currency)
    discount, discount_amount = best_discount(subtotal, quantity, product.tags, currency)

    return ProductQuoteResult(
        product_id=product.id,
        quantity=quantity,
        base_price=to_decimal(product.price),
        unit_price=unit_price,
        subtotal=subtotal,
        shipping=shipping,
        discount=discount,
        discount_amount=discount_amount,
        total=subtotal + shipping.total - discount_amount,
        eta_days=product.lead_time_days or DEFAULT_LEAD_TIME_DAYS,
        currency=currency,
    )


def product_quote_number(day: date, sequence: int) -> str:
    return f"PQ-{day:%Y%m%d}-{sequence:04d}"


class ProductQuoteService:
    def __init__(self, session: AsyncSession, email_service: EmailService | None = None) -> None:
        self.session = session
        self.product_repo = ProductRepository(session)
        self.email_service = email_service or EmailService(session)

    async def _product(self, product_id: uuid.UUID):
        product = await self.product_repo.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    async def compute(self, product_id: uuid.UUID, quantity: int, delivery_city: str) -> ProductQuoteResult:
        product = await self._product(product_id)
        return compute_product_quote(product, quantity, delivery_city)

    async def send(self, request: SendProductQuoteRequest, now: datetime | None = None) -> dict[str, Any]:
        """Price the request server-side, store it and email the offer when the customer asked for email."""
        product = await self._product(request.product_id)
        quote = compute_product_quote(product, request.quantity, request.delivery_city)

        now = now or datetime.now(timezone.utc)
        sequence = await self.product_repo.count_quotes_on(now.date()) + 1
        number = product_quote_number(now.date(), sequence)
        valid_until = now.date() + timedelta(days=product.quote_validity_days or DEFAULT_VALIDITY_DAYS)

        await self.product_repo.save_quote(
            ProductQuote(
                quote_number=number,
                product_id=product.id,
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                customer_phone=request.customer_phone,
                preferred_channel=request.preferred_channel,
                quantity=quote.quantity,
                delivery_city=request.delivery_city,
                delivery_country=request.delivery_country,
                notes=request.notes,
                unit_price=quote.unit_price,
                subtotal=quote.subtotal,
                shipping_fee=quote.shipping.total,
                discount_name=quote.discount,
                discount_amount=quote.discount_amount,
                total_amount=quote.total,
                currency=quote.currency,
                eta_days=quote.eta_days,
                breakdown=quote.breakdown(),
                valid_until=valid_until,
                status="sent",
                sent_at=now,
            )
        )
        logger.info("product_quote_saved", quote_number=number, product_id=str(product.id))

        email_sent = False
        if request.preferred_channel == "email":
            html = render(
                "product_quote",
                product_name=product.name,
                customer_name=request.customer_name,
                delivery_city=request.delivery_city,
                quote=quote,
                quote_number=number,
                valid_until=valid_until.isoformat(),
            )
            try:
                await self.email_service.deliver(
                    request.customer_email,
                    "product_quote",
                    f"Your Quote for {product.name} - Ref {number}",
                    html,
                )
                email_sent = True
            except ExternalServiceError as exc:
                # quote is already stored
                logger.warning("product_quote_email_failed", quote_number=number, error=exc.message)

        message = f"Quote sent successfully via {request.preferred_channel}"
        if request.preferred_channel == "email" and not email_sent:
            message = "Quote saved; email delivery failed"
        return {"success": True, "quoteId": number, "emailSent": email_sent, "message": message}
