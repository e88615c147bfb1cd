from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Quote(Base):
    __tablename__ = "quotes"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shipment_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("shipment_requests.id"), nullable=False
    )
    agreement_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("agreements.id"))

    breakdown: Mapped[dict] = mapped_column(JSONB, nullable=False)
    buy_cost: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    total_sell_price: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    profit_margin_percentage: Mapped[Decimal] = mapped_column(Numeric(9, 4), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    valid_until: Mapped[date | None] = mapped_column(Date)

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    shipment_request = relationship("ShipmentRequest", back_populates="quotes")
