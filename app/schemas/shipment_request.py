from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from app.models.enums import RateType, RequestPaymentStatus, ShipmentStatus, ShippingMode
from app.schemas.common import BaseSchema, CurrencyCode
from app.schemas.quote import ShipmentItemIn


class ShipmentRequestCreate(BaseModel):
    origin: str = Field(min_length=1, max_length=64)
    destination: str = Field(min_length=1, max_length=64)
    shipping_mode: ShippingMode
    rate_type: RateType
    items: list[ShipmentItemIn] = Field(min_length=1)
    currency: CurrencyCode = "OMR"


class ShipmentTransition(BaseModel):
    status: ShipmentStatus
    location: str | None = None
    notes: str | None = None
    rejection_reason: str | None = None


class StatusHistoryRead(BaseSchema):
    id: uuid.UUID
    status: ShipmentStatus
    location: str | None
    notes: str | None
    changed_by: uuid.UUID | None
    created_at: datetime | None


class ShipmentRequestRead(BaseSchema):
    id: uuid.UUID
    customer_id: uuid.UUID
    origin: str
    destination: str
    shipping_mode: ShippingMode
    rate_type: RateType
    items: list[dict]
    calculated_cost: Decimal | None
    currency: str
    status: ShipmentStatus
    payment_status: RequestPaymentStatus
    rejection_reason: str | None
    assigned_partner_id: uuid.UUID | None
    created_at: datetime | None


class ShipmentRequestDetail(ShipmentRequestRead):
    history: list[StatusHistoryRead] = Field(default_factory=list)


class ShipmentRequestList(BaseModel):
    requests: list[ShipmentRequestRead]


class ShipmentActionPayload(BaseModel):
    location: str | None = None
    notes: str | None = None
    rejection_reason: str | None = None
