from __future__ import annotations

import uuid
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.order import WmsOrder


class OrderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, order_id: str | uuid.UUID, customer_id: uuid.UUID | None = None) -> WmsOrder | None:
        value = uuid.UUID(str(order_id))
        query = select(WmsOrder).where(WmsOrder.id == value).options(selectinload(WmsOrder.items))
        if customer_id is not None:
            query = query.where(WmsOrder.customer_id == customer_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list(self, customer_id: uuid.UUID | None = None) -> list[WmsOrder]:
        query = select(WmsOrder).options(selectinload(WmsOrder.items)).order_by(WmsOrder.created_at.desc())
        if customer_id is not None:
            query = query.where(WmsOrder.customer_id == customer_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_for_customer(self, customer_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(WmsOrder).where(WmsOrder.customer_id == customer_id)
        )
        return int(result.scalar_one())

    async def save(self, order: WmsOrder) -> WmsOrder:
        self.session.add(order)
        await self.session.commit()
        await self.session.refresh(order, attribute_names=["items"])
        return order
