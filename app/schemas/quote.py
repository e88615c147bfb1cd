from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field

from app.models.enums import DimensionUnit, MarginType, RateType, ShippingMode, WeightUnit
from app.schemas.common import BaseSchema


class ShipmentItemIn(BaseModel):
    length: Decimal = Field(ge=0)
    width: Decimal = Field(ge=0)
    height: Decimal = Field(ge=0)
    weight: Decimal = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    dimension_unit: DimensionUnit = DimensionUnit.CM
    weight_unit: WeightUnit = WeightUnit.KG
    product_name: str | None = None


class MarginIn(BaseModel):
    type: MarginType
    value: Decimal = Field(ge=0)


class QuoteCalculateRequest(BaseModel):
    origin: str = Field(min_length=1, max_length=64)
    destination: str = Field(min_length=1, max_length=64)
    shipping_mode: ShippingMode
    rate_type: RateType
    items: list[ShipmentItemIn] = Field(default_factory=list)
    margin: MarginIn | None = None
    container_count: int = Field(default=1, ge=1)


class ShipmentQuoteRequest(BaseModel):
    margin: MarginIn | None = None
    container_count: int = Field(default=1, ge=1)


class SurchargeLine(BaseModel):
    type: str
    amount: Decimal


class QuoteBreakdownRead(BaseModel):
    base_rate: Decimal
    surcharges: list[SurchargeLine]
    margin: dict[str, str]
    subtotal: Decimal
    total: Decimal
    currency: str
    calculations: dict[str, str]


class QuoteRead(BaseSchema):
    id: uuid.UUID
    shipment_request_id: uuid.UUID
    agreement_id: uuid.UUID | None
    breakdown: QuoteBreakdownRead
    buy_cost: Decimal
    total_sell_price: Decimal
    profit_margin_percentage: Decimal
    currency: str
    valid_until: date | None


class QuoteList(BaseModel):
    quotes: list[QuoteRead]
