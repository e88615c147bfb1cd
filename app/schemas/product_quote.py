from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ProductQuoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: uuid.UUID = Field(alias="productId")
    quantity: int = Field(ge=1)
    delivery_city: str = Field(alias="deliveryCity", min_length=1, max_length=128)
    delivery_country: str = Field(default="Oman", alias="deliveryCountry", max_length=128)


class SendProductQuoteRequest(ProductQuoteRequest):
    customer_name: str = Field(alias="customerName", min_length=1, max_length=255)
    customer_email: str = Field(alias="customerEmail", pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    customer_phone: str | None = Field(default=None, alias="customerPhone", max_length=64)
    preferred_channel: Literal["email", "whatsapp", "phone"] = Field(default="email", alias="preferredChannel")
    notes: str | None = Field(default=None, max_length=2000)
