from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CachePolicy, cached_read, default_policy, invalidate
from app.models.agreement import Surcharge
from app.models.enums import RateType, SurchargeType
from app.services.rate_types import SurchargeSpec

CACHE_PREFIX = "surcharges:"


class SurchargeRepository:
    def __init__(self, session: AsyncSession, policy: CachePolicy | None = None) -> None:
        self.session = session
        self.policy = policy or default_policy()

    async def list_active(
        self, origin: str, destination: str, rate_type: RateType, as_of: date
    ) -> list[SurchargeSpec]:
        key = f"{CACHE_PREFIX}{origin}:{destination}:{rate_type.value}:{as_of.isoformat()}"

        async def load() -> list[dict]:
            rows = await self._list_active(origin, destination, rate_type, as_of)
            return [
                {
                    "type": SurchargeType(row.type).value,
                    "amount": str(row.amount),
                    "is_percentage": row.is_percentage,
                    "name": row.name,
                }
                for row in rows
            ]

        data = await cached_read(key, self.policy, load)
        return [
            SurchargeSpec(
                type=SurchargeType(entry["type"]),
                amount=Decimal(entry["amount"]),
                is_percentage=entry["is_percentage"],
                name=entry["name"],
            )
            for entry in data
        ]

    async def _list_active(
        self, origin: str, destination: str, rate_type: RateType, as_of: date
    ) -> list[Surcharge]:
        result = await self.session.execute(
            select(Surcharge)
            .where(
                Surcharge.active.is_(True),
                or_(Surcharge.origin.is_(None), Surcharge.origin == origin),
                or_(Surcharge.destination.is_(None), Surcharge.destination == destination),
                or_(Surcharge.rate_type.is_(None), Surcharge.rate_type == rate_type),
                Surcharge.valid_from <= as_of,
                or_(Surcharge.valid_to.is_(None), Surcharge.valid_to >= as_of),
            )
            .order_by(Surcharge.created_at, Surcharge.name)
        )
        return list(result.scalars().all())

    async def get(self, surcharge_id: str | uuid.UUID) -> Surcharge | None:
        value = uuid.UUID(str(surcharge_id))
        result = await self.session.execute(select(Surcharge).where(Surcharge.id == value))
        return result.scalar_one_or_none()

    async def list(self) -> list[Surcharge]:
        result = await self.session.execute(select(Surcharge).order_by(Surcharge.created_at))
        return list(result.scalars().all())

    async def save(self, surcharge: Surcharge) -> Surcharge:
        self.session.add(surcharge)
        await self.session.commit()
        await self.session.refresh(surcharge)
        await invalidate(CACHE_PREFIX)
        return surcharge
