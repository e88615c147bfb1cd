from __future__ import annotations

import hashlib
import html as html_lib
import re
import time
from typing import Any
from urllib.parse import urlparse

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ExternalServiceError, ValidationFailed
from app.core.logging import get_logger
from app.repositories.product_repo import ProductRepository
from app.services.providers.http_client import CircuitBreaker, get_text

logger = get_logger()

_breaker = CircuitBreaker(name="alibaba")

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_TITLE = "Imported Product"
DEFAULT_PRICE = 10.0
DEFAULT_MOQ = 10

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_PRICE_RE = re.compile(r"US\s*\$\s*([\d,]+\.?\d*)", re.IGNORECASE)
_MOQ_RE = re.compile(r"(\d+)\s*(piece|pieces|unit|units)", re.IGNORECASE)


def source_hash(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def validate_alibaba_url(url: Any) -> str:
    if not isinstance(url, str):
        raise ValidationFailed("Invalid Alibaba URL")
    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    if parsed.scheme not in ("http", "https") or not (host == "alibaba.com" or host.endswith(".alibaba.com")):
        raise ValidationFailed("Invalid Alibaba URL")
    return url.strip()


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")[:50]


def parse_product_html(page: str, url: str) -> dict[str, Any]:
    title_match = _TITLE_RE.search(page)
    title = DEFAULT_TITLE
    if title_match:
        title = html_lib.unescape(title_match.group(1)).strip().split("|")[0].split("-")[0].strip() or DEFAULT_TITLE

    price_match = _PRICE_RE.search(page)
    price = float(price_match.group(1).replace(",", "")) if price_match else DEFAULT_PRICE

    moq_match = _MOQ_RE.search(page)
    moq = int(moq_match.group(1)) if moq_match else DEFAULT_MOQ

    last_segment = url.rstrip("/").split("/")[-1]
    digits = re.sub(r"[^0-9]", "", last_segment)[:8] or str(int(time.time() * 1000))[-8:]

    summary = f"Imported from Alibaba: {title}"[:160]
    return {
        "name": title,
        "short_name": title[:30],
        "slug": slugify(title),
        "sku": f"ALI-{digits}",
        "category": "Imported",
        "tags": ["alibaba", "imported"],
        "currency": "USD",
        "base_unit_price": price,
        "min_order_qty": moq,
        "origin_country": "CN",
        "summary": summary,
        "description": "Product imported from Alibaba. Please review and update details before publishing.",
        "meta_title": title[:60],
        "meta_description": f"{title} - Imported from Alibaba"[:160],
    }


class ProductScraper:
    def __init__(self, session: AsyncSession) -> None:
        self.product_repo = ProductRepository(session)

    async def scrape(self, url: Any) -> dict[str, Any]:
        url = validate_alibaba_url(url)
        digest = source_hash(url)
        existing = await self.product_repo.get_by_source_hash(digest)
        if existing is not None:
            return {"success": False, "isDuplicate": True, "existingProductId": str(existing.id)}

        try:
            page = await get_text(url, headers={"User-Agent": USER_AGENT}, breaker=_breaker)
        except httpx.HTTPError as exc:
            logger.error("product_fetch_failed", url=url, error=str(exc))
            raise ExternalServiceError("Failed to fetch product page") from exc

        product = parse_product_html(page, url)
        logger.info("product_scraped", sku=product["sku"], source_hash=digest)
        return {"success": True, "product": product, "sourceHash": digest}
