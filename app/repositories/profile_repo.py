from __future__ import annotations

import uuid
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CachePolicy, cached_read, default_policy, invalidate
from app.models.customer import WmsCustomer, WmsCustomerUser
from app.models.profile import Profile

MEMBERSHIP_PREFIX = "wms-membership:"


class ProfileRepository:
    def __init__(self, session: AsyncSession, policy: CachePolicy | None = None) -> None:
        self.session = session
        self.policy = policy or default_policy()

    async def get_by_id(self, user_id: str | uuid.UUID) -> Profile | None:
        value = uuid.UUID(str(user_id))
        result = await self.session.execute(select(Profile).where(Profile.id == value))
        return result.scalar_one_or_none()

    async def get_membership(self, user_id: uuid.UUID) -> dict | None:
        """WMS customer link of a user as ``{"customer_id", "role"}``, cached."""

        async def load() -> dict | None:
            result = await self.session.execute(
                select(WmsCustomerUser).where(WmsCustomerUser.user_id == user_id).limit(1)
            )
            link = result.scalar_one_or_none()
            if link is None:
                return None
            return {"customer_id": str(link.customer_id), "role": link.role.value}

        return await cached_read(f"{MEMBERSHIP_PREFIX}{user_id}", self.policy, load)

    async def get_customer(self, customer_id: str | uuid.UUID) -> WmsCustomer | None:
        value = uuid.UUID(str(customer_id))
        result = await self.session.execute(select(WmsCustomer).where(WmsCustomer.id == value))
        return result.scalar_one_or_none()

    async def delete_user(self, user_id: uuid.UUID) -> bool:
        profile = await self.get_by_id(user_id)
        await self.session.execute(delete(WmsCustomerUser).where(WmsCustomerUser.user_id == user_id))
        if profile is not None:
            await self.session.delete(profile)
        await self.session.commit()
        await invalidate(f"{MEMBERSHIP_PREFIX}{user_id}")
        return profile is not None
