from __future__ import annotations

import httpx

from app.core.config import get_settings
from app.core.errors import ExternalServiceError
from app.core.logging import get_logger
from app.services.providers.http_client import CircuitBreaker, post_json

logger = get_logger()

_breaker = CircuitBreaker(name="resend")


class ResendClient:
    def __init__(self, api_key: str | None = None, api_base: str | None = None) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.resend_api_key
        self.api_base = (api_base or settings.resend_api_base).rstrip("/")

    async def send(self, sender: str, to: list[str], subject: str, html: str) -> str | None:
        if not self.api_key:
            raise ExternalServiceError("RESEND_API_KEY is not configured")
        try:
            result = await post_json(
                f"{self.api_base}/emails",
                {"from": sender, "to": to, "subject": subject, "html": html},
                headers={"Authorization": f"Bearer {self.api_key}"},
                breaker=_breaker,
            )
        except httpx.HTTPError as exc:
            logger.error("resend_send_failed", subject=subject, error=str(exc))
            raise ExternalServiceError("Email delivery failed") from exc
        return result.get("id")
