from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product, ProductQuote


class ProductRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, product_id: str | uuid.UUID) -> Product | None:
        result = await self.session.execute(select(Product).where(Product.id == uuid.UUID(str(product_id))))
        return result.scalar_one_or_none()

    async def get_by_source_hash(self, source_hash: str) -> Product | None:
        result = await self.session.execute(select(Product).where(Product.source_hash == source_hash))
        return result.scalar_one_or_none()

    async def create(self, product: Product) -> Product:
        self.session.add(product)
        await self.session.commit()
        await self.session.refresh(product)
        return product

    async def count_quotes_on(self, day: date) -> int:
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        result = await self.session.execute(
            select(func.count())
            .select_from(ProductQuote)
            .where(ProductQuote.created_at >= start, ProductQuote.created_at < start + timedelta(days=1))
        )
        return int(result.scalar_one())

    async def save_quote(self, quote: ProductQuote) -> ProductQuote:
        self.session.add(quote)
        await self.session.commit()
        await self.session.refresh(quote)
        return quote
