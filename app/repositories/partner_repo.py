from __future__ import annotations

import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.partner import ShippingPartner


class PartnerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, partner_id: str | uuid.UUID) -> ShippingPartner | None:
        value = uuid.UUID(str(partner_id))
        result = await self.session.execute(select(ShippingPartner).where(ShippingPartner.id == value))
        return result.scalar_one_or_none()
