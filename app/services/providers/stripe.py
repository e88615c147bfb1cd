"""Minimal Stripe client over the REST API (form-encoded requests)."""

from __future__ import annotations

from typing import Any

import httpx

from app.core.config import get_settings
from app.core.errors import ExternalServiceError
from app.core.logging import get_logger
from app.services.providers.http_client import CircuitBreaker, get_json, post_form

logger = get_logger()

_breaker = CircuitBreaker(name="stripe")


def flatten_form(data: dict[str, Any], prefix: str = "") -> dict[str, str]:
    """Encode nested dicts and lists with Stripe's bracket notation."""
    flat: dict[str, str] = {}
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            flat.update(flatten_form(value, name))
        elif isinstance(value, (list, tuple)):
            for index, entry in enumerate(value):
                entry_name = f"{name}[{index}]"
                if isinstance(entry, dict):
                    flat.update(flatten_form(entry, entry_name))
                else:
                    flat[entry_name] = str(entry)
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = str(value)
    return flat


class StripeClient:
    def __init__(self, secret_key: str | None = None, api_base: str | None = None) -> None:
        settings = get_settings()
        self.secret_key = secret_key or settings.stripe_secret_key
        self.api_base = (api_base or settings.stripe_api_base).rstrip("/")

    def _headers(self) -> dict[str, str]:
        if not self.secret_key:
            raise ExternalServiceError("STRIPE_SECRET_KEY is not configured")
        return {"Authorization": f"Bearer {self.secret_key}"}

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict:
        try:
            return await get_json(f"{self.api_base}{path}", headers=self._headers(), params=params, breaker=_breaker)
        except httpx.HTTPError as exc:
            logger.error("stripe_request_failed", path=path, error=str(exc))
            raise ExternalServiceError(f"Stripe GET {path} failed") from exc

    async def _post(self, path: str, data: dict[str, Any]) -> dict:
        try:
            return await post_form(
                f"{self.api_base}{path}", flatten_form(data), headers=self._headers(), breaker=_breaker
            )
        except httpx.HTTPError as exc:
            logger.error("stripe_request_failed", path=path, error=str(exc))
            raise ExternalServiceError(f"Stripe POST {path} failed") from exc

    async def find_or_create_customer(self, email: str) -> str:
        existing = await self._get("/customers", {"email": email, "limit": 1})
        customers = existing.get("data") or []
        if customers:
            return customers[0]["id"]
        created = await self._post("/customers", {"email": email})
        return created["id"]

    async def create_checkout_session(
        self,
        customer_id: str,
        amount_minor: int,
        currency: str,
        product_name: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> dict:
        return await self._post(
            "/checkout/sessions",
            {
                "customer": customer_id,
                "mode": "payment",
                "line_items": [
                    {
                        "price_data": {
                            "currency": currency,
                            "product_data": {"name": product_name, "description": description},
                            "unit_amount": amount_minor,
                        },
                        "quantity": 1,
                    }
                ],
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
            },
        )

    async def retrieve_checkout_session(self, session_id: str) -> dict:
        return await self._get(f"/checkout/sessions/{session_id}")
