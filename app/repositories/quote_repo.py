from __future__ import annotations

import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.quote import Quote


class QuoteRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, quote: Quote) -> Quote:
        self.session.add(quote)
        await self.session.commit()
        await self.session.refresh(quote)
        return quote

    async def list_for_request(self, shipment_request_id: uuid.UUID) -> list[Quote]:
        result = await self.session.execute(
            select(Quote)
            .where(Quote.shipment_request_id == shipment_request_id)
            .order_by(Quote.created_at.desc())
        )
        return list(result.scalars().all())
