from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal

from app.models.enums import MarginType, RateType, SurchargeType


@dataclass(frozen=True)
class RateCard:
    rate_type: RateType
    buy_price: Decimal
    currency: str
    margin_percent: Decimal = Decimal("0")
    min_charge: Decimal | None = None
    sell_price: Decimal | None = None
    id: uuid.UUID | None = None


@dataclass(frozen=True)
class SurchargeSpec:
    type: SurchargeType
    amount: Decimal
    is_percentage: bool = False
    name: str | None = None


@dataclass(frozen=True)
class MarginSpec:
    type: MarginType
    value: Decimal
