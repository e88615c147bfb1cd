from __future__ import annotations

import uuid
from decimal import Decimal
from pydantic import BaseModel

from app.schemas.common import BaseSchema


class InventoryRead(BaseSchema):
    id: uuid.UUID
    customer_id: uuid.UUID
    sku: str
    product_name: str
    description: str | None
    quantity: int
    consumed_quantity: int
    minimum_quantity: int
    max_stock_level: int | None
    price_per_unit: Decimal
    unit: str
    location: str | None
    available: int = 0
    low_stock: bool = False


class InventoryList(BaseModel):
    items: list[InventoryRead]
    total_value: Decimal
