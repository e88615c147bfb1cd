from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.deps import get_session_context
from app.core.session_context import SessionContext
from app.schemas.session import SessionRead

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionRead)
async def current_session(context: SessionContext = Depends(get_session_context)):
    return context.as_dict()
