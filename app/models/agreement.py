from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.enums import RateType, SurchargeType


class Agreement(Base):
    __tablename__ = "agreements"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    partner_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("shipping_partners.id"))

    origin: Mapped[str] = mapped_column(String(64), nullable=False)
    destination: Mapped[str] = mapped_column(String(64), nullable=False)
    rate_type: Mapped[RateType] = mapped_column(Enum(RateType), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    buy_price: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    sell_price: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    margin_percent: Mapped[Decimal] = mapped_column(Numeric(9, 4), nullable=False, default=0)
    min_charge: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))

    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"))

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Surcharge(Base):
    __tablename__ = "surcharges"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[SurchargeType] = mapped_column(Enum(SurchargeType), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    is_percentage: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Null lane fields apply to every lane.
    origin: Mapped[str | None] = mapped_column(String(64))
    destination: Mapped[str | None] = mapped_column(String(64))
    rate_type: Mapped[RateType | None] = mapped_column(Enum(RateType))

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date | None] = mapped_column(Date)

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
