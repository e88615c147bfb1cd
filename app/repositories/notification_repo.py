from __future__ import annotations

import uuid
from datetime import datetime, timezone
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import EmailLog, NotificationPreferences, PushSubscription


class NotificationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_subscriptions(self, user_id: uuid.UUID) -> list[PushSubscription]:
        result = await self.session.execute(select(PushSubscription).where(PushSubscription.user_id == user_id))
        return list(result.scalars().all())

    async def delete_subscription(self, subscription_id: uuid.UUID) -> None:
        await self.session.execute(delete(PushSubscription).where(PushSubscription.id == subscription_id))
        await self.session.commit()

    async def touch_subscription(self, subscription_id: uuid.UUID) -> None:
        await self.session.execute(
            update(PushSubscription)
            .where(PushSubscription.id == subscription_id)
            .values(last_used_at=datetime.now(timezone.utc))
        )
        await self.session.commit()

    async def get_preferences(self, user_id: uuid.UUID) -> NotificationPreferences | None:
        result = await self.session.execute(
            select(NotificationPreferences).where(NotificationPreferences.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def log_email(self, entry: EmailLog) -> EmailLog:
        self.session.add(entry)
        await self.session.commit()
        return entry
