from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from app.models.enums import InvoiceStatus
from app.schemas.common import BaseSchema


class InvoiceGenerate(BaseModel):
    order_id: uuid.UUID
    invoice_date: date | None = None


class InvoiceTransition(BaseModel):
    status: InvoiceStatus


class InvoiceItemRead(BaseSchema):
    id: uuid.UUID
    description: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class InvoiceRead(BaseSchema):
    id: uuid.UUID
    invoice_number: str
    order_id: uuid.UUID
    customer_id: uuid.UUID
    status: InvoiceStatus
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    vat_exempt: bool
    notes: str | None
    invoice_date: date
    due_date: date
    sent_at: datetime | None
    viewed_at: datetime | None
    paid_at: datetime | None
    items: list[InvoiceItemRead] = Field(default_factory=list)


class InvoiceList(BaseModel):
    invoices: list[InvoiceRead]


class OverdueResult(BaseModel):
    updated: int
    invoice_ids: list[uuid.UUID]
