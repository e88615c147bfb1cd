from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator

from app.models.enums import RateType, SurchargeType
from app.schemas.common import BaseSchema, CurrencyCode


class AgreementCreate(BaseModel):
    partner_id: uuid.UUID | None = None
    origin: str = Field(min_length=1, max_length=64)
    destination: str = Field(min_length=1, max_length=64)
    rate_type: RateType
    currency: CurrencyCode = "OMR"
    buy_price: Decimal = Field(ge=0)
    sell_price: Decimal = Field(ge=0)
    margin_percent: Decimal = Field(default=Decimal("0"), ge=0)
    min_charge: Decimal | None = Field(default=None, ge=0)
    valid_from: date
    valid_to: date | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def check_validity(self):
        if self.valid_to is not None and self.valid_to < self.valid_from:
            raise ValueError("valid_to must not precede valid_from")
        return self


class AgreementUpdate(BaseModel):
    partner_id: uuid.UUID | None = None
    buy_price: Decimal | None = Field(default=None, ge=0)
    sell_price: Decimal | None = Field(default=None, ge=0)
    margin_percent: Decimal | None = Field(default=None, ge=0)
    min_charge: Decimal | None = Field(default=None, ge=0)
    valid_from: date | None = None
    valid_to: date | None = None
    notes: str | None = None
    active: bool | None = None


class AgreementRead(BaseSchema):
    id: uuid.UUID
    partner_id: uuid.UUID | None
    origin: str
    destination: str
    rate_type: RateType
    currency: str
    buy_price: Decimal
    sell_price: Decimal
    margin_percent: Decimal
    min_charge: Decimal | None
    valid_from: date
    valid_to: date | None
    notes: str | None
    active: bool


class AgreementList(BaseModel):
    agreements: list[AgreementRead]


class SurchargeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    type: SurchargeType
    amount: Decimal = Field(ge=0)
    is_percentage: bool = False
    origin: str | None = None
    destination: str | None = None
    rate_type: RateType | None = None
    valid_from: date = Field(default_factory=date.today)
    valid_to: date | None = None


class SurchargeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    amount: Decimal | None = Field(default=None, ge=0)
    is_percentage: bool | None = None
    valid_to: date | None = None
    active: bool | None = None


class SurchargeRead(BaseSchema):
    id: uuid.UUID
    name: str
    type: SurchargeType
    amount: Decimal
    is_percentage: bool
    origin: str | None
    destination: str | None
    rate_type: RateType | None
    active: bool
    valid_from: date
    valid_to: date | None


class SurchargeList(BaseModel):
    surcharges: list[SurchargeRead]
