from __future__ import annotations

import uuid
from datetime import date
from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.enums import InvoiceStatus
from app.models.invoice import WmsInvoice


class InvoiceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, invoice_id: str | uuid.UUID, customer_id: uuid.UUID | None = None) -> WmsInvoice | None:
        value = uuid.UUID(str(invoice_id))
        query = select(WmsInvoice).where(WmsInvoice.id == value).options(selectinload(WmsInvoice.items))
        if customer_id is not None:
            query = query.where(WmsInvoice.customer_id == customer_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_order(self, order_id: uuid.UUID) -> WmsInvoice | None:
        result = await self.session.execute(select(WmsInvoice).where(WmsInvoice.order_id == order_id))
        return result.scalar_one_or_none()

    async def list(self, customer_id: uuid.UUID | None = None) -> list[WmsInvoice]:
        query = select(WmsInvoice).order_by(WmsInvoice.invoice_date.desc())
        if customer_id is not None:
            query = query.where(WmsInvoice.customer_id == customer_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_for_year(self, customer_id: uuid.UUID, year: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(WmsInvoice)
            .where(WmsInvoice.customer_id == customer_id, extract("year", WmsInvoice.invoice_date) == year)
        )
        return int(result.scalar_one())

    async def list_past_due(self, today: date) -> list[WmsInvoice]:
        result = await self.session.execute(
            select(WmsInvoice).where(
                WmsInvoice.status.in_([InvoiceStatus.SENT, InvoiceStatus.VIEWED]),
                WmsInvoice.due_date < today,
            )
        )
        return list(result.scalars().all())

    async def save(self, invoice: WmsInvoice) -> WmsInvoice:
        self.session.add(invoice)
        await self.session.commit()
        await self.session.refresh(invoice, attribute_names=["items"])
        return invoice

    async def save_all(self, invoices: list[WmsInvoice]) -> None:
        self.session.add_all(invoices)
        await self.session.commit()
