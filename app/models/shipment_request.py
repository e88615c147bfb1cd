from __future__ import annotations

import uuid
from decimal import Decimal
from sqlalchemy import DateTime, Enum, ForeignKey, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.enums import RateType, RequestPaymentStatus, ShipmentStatus, ShippingMode


class ShipmentRequest(Base):
    __tablename__ = "shipment_requests"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)

    origin: Mapped[str] = mapped_column(String(64), nullable=False)
    destination: Mapped[str] = mapped_column(String(64), nullable=False)
    shipping_mode: Mapped[ShippingMode] = mapped_column(Enum(ShippingMode), nullable=False)
    rate_type: Mapped[RateType] = mapped_column(Enum(RateType), nullable=False)
    items: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    calculated_cost: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    status: Mapped[ShipmentStatus] = mapped_column(
        Enum(ShipmentStatus), nullable=False, default=ShipmentStatus.RECEIVED_FROM_SUPPLIER
    )
    payment_status: Mapped[RequestPaymentStatus] = mapped_column(
        Enum(RequestPaymentStatus), nullable=False, default=RequestPaymentStatus.UNPAID
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    assigned_partner_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("shipping_partners.id")
    )
    driver_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"))

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    history = relationship(
        "ShipmentStatusHistory",
        back_populates="shipment_request",
        order_by="ShipmentStatusHistory.created_at",
        cascade="all, delete-orphan",
    )
    quotes = relationship("Quote", back_populates="shipment_request", cascade="all, delete-orphan")


class ShipmentStatusHistory(Base):
    __tablename__ = "shipment_status_history"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shipment_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("shipment_requests.id"), nullable=False
    )
    status: Mapped[ShipmentStatus] = mapped_column(Enum(ShipmentStatus), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(Text)
    changed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"))
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    shipment_request = relationship("ShipmentRequest", back_populates="history")
