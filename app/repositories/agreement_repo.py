from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CachePolicy, cached_read, default_policy, invalidate
from app.models.agreement import Agreement
from app.models.enums import RateType
from app.services.rate_types import RateCard

CACHE_PREFIX = "agreements:"


def _serialize(agreement: Agreement) -> dict:
    return {
        "id": str(agreement.id),
        "rate_type": RateType(agreement.rate_type).value,
        "buy_price": str(agreement.buy_price),
        "sell_price": str(agreement.sell_price),
        "margin_percent": str(agreement.margin_percent or 0),
        "min_charge": str(agreement.min_charge) if agreement.min_charge is not None else None,
        "currency": agreement.currency,
    }


def _rate_card(data: dict) -> RateCard:
    return RateCard(
        id=uuid.UUID(data["id"]),
        rate_type=RateType(data["rate_type"]),
        buy_price=Decimal(data["buy_price"]),
        sell_price=Decimal(data["sell_price"]),
        margin_percent=Decimal(data["margin_percent"]),
        min_charge=Decimal(data["min_charge"]) if data["min_charge"] is not None else None,
        currency=data["currency"],
    )


class AgreementRepository:
    def __init__(self, session: AsyncSession, policy: CachePolicy | None = None) -> None:
        self.session = session
        self.policy = policy or default_policy()

    async def find_active_rate(
        self, origin: str, destination: str, rate_type: RateType, as_of: date
    ) -> RateCard | None:
        key = f"{CACHE_PREFIX}rate:{origin}:{destination}:{rate_type.value}:{as_of.isoformat()}"

        async def load() -> dict | None:
            agreement = await self._find_active(origin, destination, rate_type, as_of)
            return _serialize(agreement) if agreement else None

        data = await cached_read(key, self.policy, load)
        return _rate_card(data) if data else None

    async def _find_active(
        self, origin: str, destination: str, rate_type: RateType, as_of: date
    ) -> Agreement | None:
        result = await self.session.execute(
            select(Agreement)
            .where(
                Agreement.origin == origin,
                Agreement.destination == destination,
                Agreement.rate_type == rate_type,
                Agreement.active.is_(True),
                Agreement.valid_from <= as_of,
                or_(Agreement.valid_to.is_(None), Agreement.valid_to >= as_of),
            )
            .order_by(Agreement.valid_from.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get(self, agreement_id: str | uuid.UUID) -> Agreement | None:
        value = uuid.UUID(str(agreement_id))
        result = await self.session.execute(select(Agreement).where(Agreement.id == value))
        return result.scalar_one_or_none()

    async def list(self, active_only: bool = False) -> list[Agreement]:
        query = select(Agreement).order_by(Agreement.origin, Agreement.destination, Agreement.valid_from.desc())
        if active_only:
            query = query.where(Agreement.active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create(self, agreement: Agreement) -> Agreement:
        self.session.add(agreement)
        await self.session.commit()
        await self.session.refresh(agreement)
        await invalidate(CACHE_PREFIX)
        return agreement

    async def update(self, agreement: Agreement) -> Agreement:
        self.session.add(agreement)
        await self.session.commit()
        await self.session.refresh(agreement)
        await invalidate(CACHE_PREFIX)
        return agreement
