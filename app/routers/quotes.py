from __future__ import annotations

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_db_session, get_session_context, require_staff
from app.core.session_context import SessionContext
from app.repositories.quote_repo import QuoteRepository
from app.repositories.shipment_request_repo import ShipmentRequestRepository
from app.schemas.quote import (
    MarginIn,
    QuoteBreakdownRead,
    QuoteCalculateRequest,
    QuoteList,
    QuoteRead,
    ShipmentQuoteRequest,
)
from app.services.calculator import QuoteService, ShipmentItem
from app.services.rate_types import MarginSpec

router = APIRouter(tags=["quotes"])


def _margin(payload: MarginIn | None) -> MarginSpec | None:
    if payload is None:
        return None
    return MarginSpec(type=payload.type, value=payload.value)


def _items(raw: list[dict]) -> list[ShipmentItem]:
    return [
        ShipmentItem(
            length=Decimal(str(item["length"])),
            width=Decimal(str(item["width"])),
            height=Decimal(str(item["height"])),
            weight=Decimal(str(item["weight"])),
            quantity=item.get("quantity", 1),
            dimension_unit=item.get("dimension_unit", "cm"),
            weight_unit=item.get("weight_unit", "kg"),
            product_name=item.get("product_name"),
        )
        for item in raw
    ]


@router.post("/quotes/calculate", response_model=QuoteBreakdownRead)
async def calculate_quote(
    payload: QuoteCalculateRequest,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    service = QuoteService(session)
    _, breakdown = await service.calculate(
        payload.origin,
        payload.destination,
        payload.shipping_mode,
        payload.rate_type,
        _items([item.model_dump(mode="json") for item in payload.items]),
        margin=_margin(payload.margin),
        container_count=payload.container_count,
    )
    return breakdown.as_dict()


@router.post("/shipment-requests/{request_id}/quote", response_model=QuoteRead)
async def quote_shipment_request(
    request_id: uuid.UUID,
    payload: ShipmentQuoteRequest,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = ShipmentRequestRepository(session)
    request = await repo.get(request_id)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment request not found")

    service = QuoteService(session)
    rate, breakdown = await service.calculate(
        request.origin,
        request.destination,
        request.shipping_mode,
        request.rate_type,
        _items(request.items or []),
        margin=_margin(payload.margin),
        container_count=payload.container_count,
    )
    quote = await service.save_quote(request.id, rate, breakdown)
    request.calculated_cost = breakdown.total
    request.currency = breakdown.currency
    await repo.update(request)
    return quote


@router.get("/shipment-requests/{request_id}/quotes", response_model=QuoteList)
async def list_request_quotes(
    request_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    owner = None if context.is_staff else context.user_id
    request = await ShipmentRequestRepository(session).get(request_id, customer_id=owner)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment request not found")
    return {"quotes": await QuoteRepository(session).list_for_request(request.id)}
