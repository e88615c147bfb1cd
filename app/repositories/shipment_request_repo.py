from __future__ import annotations

import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.shipment_request import ShipmentRequest, ShipmentStatusHistory


class ShipmentRequestRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, request: ShipmentRequest) -> ShipmentRequest:
        self.session.add(request)
        await self.session.commit()
        await self.session.refresh(request)
        return request

    async def get(self, request_id: str | uuid.UUID, customer_id: uuid.UUID | None = None) -> ShipmentRequest | None:
        value = uuid.UUID(str(request_id))
        query = (
            select(ShipmentRequest)
            .where(ShipmentRequest.id == value)
            .options(selectinload(ShipmentRequest.history))
            .execution_options(populate_existing=True)
        )
        if customer_id is not None:
            query = query.where(ShipmentRequest.customer_id == customer_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list(self, customer_id: uuid.UUID | None = None) -> list[ShipmentRequest]:
        query = select(ShipmentRequest).order_by(ShipmentRequest.created_at.desc())
        if customer_id is not None:
            query = query.where(ShipmentRequest.customer_id == customer_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, request: ShipmentRequest) -> ShipmentRequest:
        self.session.add(request)
        await self.session.commit()
        await self.session.refresh(request)
        return request

    async def add_history(self, entry: ShipmentStatusHistory) -> ShipmentStatusHistory:
        self.session.add(entry)
        await self.session.commit()
        return entry
