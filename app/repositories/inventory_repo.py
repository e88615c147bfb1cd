from __future__ import annotations

import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.inventory import WmsInventory


class InventoryRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, item_id: str | uuid.UUID, customer_id: uuid.UUID | None = None) -> WmsInventory | None:
        value = uuid.UUID(str(item_id))
        query = select(WmsInventory).where(WmsInventory.id == value)
        if customer_id is not None:
            query = query.where(WmsInventory.customer_id == customer_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, item_ids: list[uuid.UUID]) -> dict[uuid.UUID, WmsInventory]:
        if not item_ids:
            return {}
        result = await self.session.execute(select(WmsInventory).where(WmsInventory.id.in_(item_ids)))
        return {item.id: item for item in result.scalars().all()}

    async def list(self, customer_id: uuid.UUID | None = None) -> list[WmsInventory]:
        query = select(WmsInventory).order_by(WmsInventory.product_name)
        if customer_id is not None:
            query = query.where(WmsInventory.customer_id == customer_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def existing_skus(self, customer_id: uuid.UUID) -> set[str]:
        result = await self.session.execute(
            select(WmsInventory.sku).where(WmsInventory.customer_id == customer_id)
        )
        return set(result.scalars().all())

    async def add(self, item: WmsInventory) -> WmsInventory:
        self.session.add(item)
        await self.session.commit()
        await self.session.refresh(item)
        return item
