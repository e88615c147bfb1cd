from __future__ import annotations

import uuid
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_db_session, get_session_context, require_staff
from app.core.errors import ValidationFailed
from app.core.logging import get_logger
from app.core.session_context import SessionContext
from app.models.enums import ShipmentStatus
from app.models.shipment_request import ShipmentRequest, ShipmentStatusHistory
from app.repositories.shipment_request_repo import ShipmentRequestRepository
from app.schemas.shipment_request import (
    ShipmentActionPayload,
    ShipmentRequestCreate,
    ShipmentRequestDetail,
    ShipmentRequestList,
    ShipmentRequestRead,
    ShipmentTransition,
)
from app.schemas.workflow import ActionList, TimelineRead
from app.services.workflow import SHIPMENT_WORKFLOW

logger = get_logger()

router = APIRouter(prefix="/shipment-requests", tags=["shipment-requests"])


async def _load(repo: ShipmentRequestRepository, request_id: uuid.UUID, context: SessionContext) -> ShipmentRequest:
    request = await repo.get(request_id, customer_id=None if context.is_staff else context.user_id)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment request not found")
    return request


async def _apply(
    repo: ShipmentRequestRepository,
    request: ShipmentRequest,
    target: ShipmentStatus,
    context: SessionContext,
    location: str | None = None,
    notes: str | None = None,
    rejection_reason: str | None = None,
) -> ShipmentRequest:
    SHIPMENT_WORKFLOW.assert_transition(request.status, target)
    if target == ShipmentStatus.REJECTED:
        if not rejection_reason:
            raise ValidationFailed("Rejection reason is required")
        request.rejection_reason = rejection_reason
    previous = ShipmentStatus(request.status)
    request.status = target
    await repo.add_history(
        ShipmentStatusHistory(
            shipment_request_id=request.id,
            status=target,
            location=location,
            notes=notes,
            changed_by=context.user_id,
        )
    )
    logger.info(
        "shipment_status_changed",
        shipment_request_id=str(request.id),
        from_status=previous.value,
        to_status=target.value,
    )
    await repo.update(request)
    return await repo.get(request.id)


@router.post("", response_model=ShipmentRequestDetail, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: ShipmentRequestCreate,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    repo = ShipmentRequestRepository(session)
    request = await repo.create(
        ShipmentRequest(
            customer_id=context.user_id,
            origin=payload.origin,
            destination=payload.destination,
            shipping_mode=payload.shipping_mode,
            rate_type=payload.rate_type,
            items=[item.model_dump(mode="json") for item in payload.items],
            currency=payload.currency.upper(),
            status=ShipmentStatus.RECEIVED_FROM_SUPPLIER,
        )
    )
    await repo.add_history(
        ShipmentStatusHistory(
            shipment_request_id=request.id,
            status=ShipmentStatus.RECEIVED_FROM_SUPPLIER,
            changed_by=context.user_id,
        )
    )
    return await repo.get(request.id)


@router.get("", response_model=ShipmentRequestList)
async def list_requests(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    repo = ShipmentRequestRepository(session)
    requests = await repo.list(customer_id=None if context.is_staff else context.user_id)
    return ShipmentRequestList(requests=[ShipmentRequestRead.model_validate(r) for r in requests])


@router.get("/{request_id}", response_model=ShipmentRequestDetail)
async def get_request(
    request_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    return await _load(ShipmentRequestRepository(session), request_id, context)


@router.post("/{request_id}/transition", response_model=ShipmentRequestDetail)
async def transition_request(
    request_id: uuid.UUID,
    payload: ShipmentTransition,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = ShipmentRequestRepository(session)
    request = await _load(repo, request_id, context)
    return await _apply(
        repo,
        request,
        payload.status,
        context,
        location=payload.location,
        notes=payload.notes,
        rejection_reason=payload.rejection_reason,
    )


@router.get("/{request_id}/timeline", response_model=TimelineRead)
async def request_timeline(
    request_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    request = await _load(ShipmentRequestRepository(session), request_id, context)
    return TimelineRead.for_status(SHIPMENT_WORKFLOW, request.status)


@router.get("/{request_id}/actions", response_model=ActionList)
async def request_actions(
    request_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    request = await _load(ShipmentRequestRepository(session), request_id, context)
    if not context.is_staff:
        return ActionList(status=ShipmentStatus(request.status).value, actions=[])
    return ActionList.for_status(SHIPMENT_WORKFLOW, request.status)


@router.post("/{request_id}/actions/{action_name}", response_model=ShipmentRequestDetail)
async def run_request_action(
    request_id: uuid.UUID,
    action_name: str,
    payload: ShipmentActionPayload | None = None,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = ShipmentRequestRepository(session)
    request = await _load(repo, request_id, context)
    action = SHIPMENT_WORKFLOW.action(request.status, action_name)
    return await _apply(
        repo,
        request,
        ShipmentStatus(action.target),
        context,
        location=payload.location if payload else None,
        notes=payload.notes if payload else None,
        rejection_reason=payload.rejection_reason if payload else None,
    )
