from __future__ import annotations

import uuid
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_db_session, require_staff
from app.core.session_context import SessionContext
from app.models.agreement import Agreement, Surcharge
from app.repositories.agreement_repo import AgreementRepository
from app.repositories.surcharge_repo import SurchargeRepository
from app.schemas.agreement import (
    AgreementCreate,
    AgreementList,
    AgreementRead,
    AgreementUpdate,
    SurchargeCreate,
    SurchargeList,
    SurchargeRead,
    SurchargeUpdate,
)

router = APIRouter(prefix="/agreements", tags=["agreements"])
surcharge_router = APIRouter(prefix="/surcharges", tags=["surcharges"])


@router.get("", response_model=AgreementList)
async def list_agreements(
    active_only: bool = False,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = AgreementRepository(session)
    return AgreementList(agreements=await repo.list(active_only=active_only))


@router.post("", response_model=AgreementRead, status_code=status.HTTP_201_CREATED)
async def create_agreement(
    payload: AgreementCreate,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = AgreementRepository(session)
    agreement = Agreement(**payload.model_dump(), created_by=context.user_id)
    return await repo.create(agreement)


@router.get("/{agreement_id}", response_model=AgreementRead)
async def get_agreement(
    agreement_id: uuid.UUID,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    agreement = await AgreementRepository(session).get(agreement_id)
    if not agreement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agreement not found")
    return agreement


@router.patch("/{agreement_id}", response_model=AgreementRead)
async def update_agreement(
    agreement_id: uuid.UUID,
    payload: AgreementUpdate,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = AgreementRepository(session)
    agreement = await repo.get(agreement_id)
    if not agreement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agreement not found")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(agreement, key, value)
    if agreement.valid_to is not None and agreement.valid_to < agreement.valid_from:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="valid_to must not precede valid_from")
    return await repo.update(agreement)


@router.post("/{agreement_id}/deactivate", response_model=AgreementRead)
async def deactivate_agreement(
    agreement_id: uuid.UUID,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = AgreementRepository(session)
    agreement = await repo.get(agreement_id)
    if not agreement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agreement not found")
    agreement.active = False
    return await repo.update(agreement)


@surcharge_router.get("", response_model=SurchargeList)
async def list_surcharges(context: SessionContext = Depends(require_staff), session=Depends(get_db_session)):
    return SurchargeList(surcharges=await SurchargeRepository(session).list())


@surcharge_router.post("", response_model=SurchargeRead, status_code=status.HTTP_201_CREATED)
async def create_surcharge(
    payload: SurchargeCreate,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    return await SurchargeRepository(session).save(Surcharge(**payload.model_dump()))


@surcharge_router.patch("/{surcharge_id}", response_model=SurchargeRead)
async def update_surcharge(
    surcharge_id: uuid.UUID,
    payload: SurchargeUpdate,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = SurchargeRepository(session)
    surcharge = await repo.get(surcharge_id)
    if not surcharge:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Surcharge not found")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(surcharge, key, value)
    return await repo.save(surcharge)


@surcharge_router.post("/{surcharge_id}/deactivate", response_model=SurchargeRead)
async def deactivate_surcharge(
    surcharge_id: uuid.UUID,
    context: SessionContext = Depends(require_staff),
    session=Depends(get_db_session),
):
    repo = SurchargeRepository(session)
    surcharge = await repo.get(surcharge_id)
    if not surcharge:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Surcharge not found")
    surcharge.active = False
    return await repo.save(surcharge)
