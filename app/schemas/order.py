from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from app.models.enums import OrderStatus, OrderType
from app.schemas.common import BaseSchema


class OrderLineIn(BaseModel):
    inventory_id: uuid.UUID
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    customer_id: uuid.UUID | None = None
    items: list[OrderLineIn] = Field(min_length=1)
    delivery_address: str | None = None
    notes: str | None = None


class OrderTransition(BaseModel):
    status: OrderStatus


class ReorderCreate(BaseModel):
    inventory_id: uuid.UUID
    quantity: int | None = Field(default=None, ge=1)


class OrderItemRead(BaseSchema):
    id: uuid.UUID
    inventory_id: uuid.UUID | None
    product_name: str
    quantity: int
    price_per_unit: Decimal
    total_price: Decimal


class OrderRead(BaseSchema):
    id: uuid.UUID
    order_number: str
    customer_id: uuid.UUID
    order_type: OrderType
    status: OrderStatus
    total_amount: Decimal
    delivery_address: str | None
    notes: str | None
    approved_at: datetime | None
    delivered_at: datetime | None
    created_at: datetime | None
    items: list[OrderItemRead] = Field(default_factory=list)


class OrderList(BaseModel):
    orders: list[OrderRead]
