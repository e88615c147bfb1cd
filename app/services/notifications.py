"""Push and email notifications.

Push messages follow the service worker contract::

    {title, body, icon, badge, data: {url}, actions: [{action: "view"}, {action: "dismiss"}]}

Subscriptions whose endpoint answers 404 or 410 are gone for good and are removed.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import NotFound, ValidationFailed
from app.core.logging import get_logger
from app.models.notification import EmailLog
from app.repositories.notification_repo import NotificationRepository
from app.repositories.profile_repo import ProfileRepository
from app.services.providers.resend import ResendClient
from app.services.templates import render

logger = get_logger()

DEFAULT_ICON = "/favicon.png"
DEFAULT_BADGE = "/favicon.png"
DEFAULT_URL = "/dashboard"
PUSH_TTL_SECONDS = 86400
GONE_STATUSES = {404, 410}

# Template -> preference flag; templates not listed are always sent.
EMAIL_PREFERENCE_FLAGS = {
    "quote_ready": "email_on_quote",
    "status_update": "email_on_status_update",
    "request_approved": "email_on_approval",
    "document_uploaded": "email_on_document",
}

USER_EMAIL_TEMPLATES = set(EMAIL_PREFERENCE_FLAGS)


def build_push_payload(title: str, body: str, icon: str | None = None, url: str | None = None) -> dict[str, Any]:
    return {
        "title": title,
        "body": body,
        "icon": icon or DEFAULT_ICON,
        "badge": DEFAULT_BADGE,
        "data": {"url": url or DEFAULT_URL},
        "actions": [
            {"action": "view", "title": "View"},
            {"action": "dismiss", "title": "Dismiss"},
        ],
    }


def resolve_click_target(action: str | None, data: dict | None) -> str | None:
    if action == "dismiss":
        return None
    return (data or {}).get("url") or DEFAULT_URL


def should_send_email(preferences, template: str) -> bool:
    if preferences is None:
        return True
    flag = EMAIL_PREFERENCE_FLAGS.get(template)
    if flag is None:
        return True
    return bool(getattr(preferences, flag, True))


@dataclass
class PushResult:
    subscription_id: str
    success: bool
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "subscriptionId": self.subscription_id}
        if self.error:
            data["error"] = self.error
        return data


class PushService:
    def __init__(self, session: AsyncSession, client: httpx.AsyncClient | None = None) -> None:
        self.repo = NotificationRepository(session)
        self.client = client

    async def _post(self, endpoint: str, payload: dict) -> httpx.Response:
        headers = {"Content-Type": "application/json", "TTL": str(PUSH_TTL_SECONDS)}
        if self.client is not None:
            return await self.client.post(endpoint, content=json.dumps(payload), headers=headers)
        async with httpx.AsyncClient(timeout=10) as client:
            return await client.post(endpoint, content=json.dumps(payload), headers=headers)

    async def send(
        self, user_id: uuid.UUID, title: str, body: str, icon: str | None = None, url: str | None = None
    ) -> list[PushResult]:
        settings = get_settings()
        if not settings.vapid_public_key or not settings.vapid_private_key:
            raise ValidationFailed("VAPID keys not configured")

        subscriptions = await self.repo.list_subscriptions(user_id)
        payload = build_push_payload(title, body, icon, url)
        results = []
        for subscription in subscriptions:
            subscription_id = str(subscription.id)
            try:
                response = await self._post(subscription.endpoint, payload)
            except httpx.HTTPError as exc:
                logger.warning("push_send_failed", subscription_id=subscription_id, error=str(exc))
                results.append(PushResult(subscription_id, False, "Push delivery failed"))
                continue

            if response.status_code in GONE_STATUSES:
                logger.info("push_subscription_removed", subscription_id=subscription_id)
                await self.repo.delete_subscription(subscription.id)
                results.append(PushResult(subscription_id, False, f"Push failed: {response.status_code}"))
            elif response.is_success:
                await self.repo.touch_subscription(subscription.id)
                results.append(PushResult(subscription_id, True))
            else:
                results.append(PushResult(subscription_id, False, f"Push failed: {response.status_code}"))

        logger.info(
            "push_sent",
            user_id=str(user_id),
            total=len(results),
            success=sum(1 for result in results if result.success),
        )
        return results


class EmailService:
    def __init__(self, session: AsyncSession, client: ResendClient | None = None) -> None:
        self.repo = NotificationRepository(session)
        self.profile_repo = ProfileRepository(session)
        self.client = client or ResendClient()

    async def deliver(
        self,
        recipient: str,
        template: str,
        subject: str,
        html: str,
        user_id: uuid.UUID | None = None,
        sender: str | None = None,
    ) -> str | None:
        message_id = await self.client.send(sender or get_settings().email_from, [recipient], subject, html)
        await self.repo.log_email(
            EmailLog(
                user_id=user_id,
                recipient=recipient,
                template=template,
                subject=subject,
                provider_message_id=message_id,
            )
        )
        logger.info("email_sent", template=template, message_id=message_id)
        return message_id

    async def send_to_user(
        self, user_id: uuid.UUID, template: str, subject: str, metadata: dict | None = None
    ) -> dict[str, Any]:
        """Render ``template`` for a user and send it unless their preferences opt out."""
        if template not in USER_EMAIL_TEMPLATES:
            raise ValidationFailed(f"Unknown email template: {template}")
        profile = await self.profile_repo.get_by_id(user_id)
        if profile is None or not profile.email:
            raise NotFound("User email not found")

        preferences = await self.repo.get_preferences(user_id)
        if not should_send_email(preferences, template):
            return {"sent": False, "message": "Email notifications disabled for this type"}

        metadata = dict(metadata or {})
        metadata.setdefault("url", f"{get_settings().public_app_url}{DEFAULT_URL}")
        metadata.setdefault("name", profile.full_name or profile.email)
        html = render(template, **metadata)
        message_id = await self.deliver(profile.email, template, subject, html, user_id=user_id)
        return {"sent": True, "emailId": message_id}
