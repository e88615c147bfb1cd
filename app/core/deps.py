from __future__ import annotations

import uuid
from typing import AsyncIterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotAuthenticated
from app.core.security import decode_token
from app.core.session_context import SessionContext
from app.db.session import get_session
from app.repositories.profile_repo import ProfileRepository

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncSession:
    async for session in get_session():
        yield session


async def get_session_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> AsyncIterator[SessionContext]:
    if credentials is None:
        raise NotAuthenticated("Missing bearer token")
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as exc:
        raise NotAuthenticated("Invalid token") from exc

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise NotAuthenticated("Invalid token subject") from exc

    repo = ProfileRepository(session)
    profile = await repo.get_by_id(user_id)
    role = profile.role if profile else (payload.get("app_metadata") or {}).get("role")
    membership = await repo.get_membership(user_id)

    context = SessionContext.build(
        user_id=user_id,
        email=payload.get("email") or (profile.email if profile else None),
        role=role,
        wms_customer_id=uuid.UUID(membership["customer_id"]) if membership else None,
        wms_role=membership["role"] if membership else None,
    )
    try:
        yield context
    finally:
        context.close()


def require_capability(name: str):
    async def dependency(context: SessionContext = Depends(get_session_context)) -> SessionContext:
        context.require(name)
        return context

    return dependency


async def require_admin(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    context.require_admin()
    return context


async def require_staff(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    context.require_staff()
    return context
