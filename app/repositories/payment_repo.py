from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment


class PaymentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_session(self, stripe_session_id: str) -> Payment | None:
        result = await self.session.execute(select(Payment).where(Payment.stripe_session_id == stripe_session_id))
        return result.scalar_one_or_none()

    async def save(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.commit()
        await self.session.refresh(payment)
        return payment
