from __future__ import annotations

from typing import Any

from jose import jwt

from app.core.config import get_settings


def decode_token(token: str) -> dict[str, Any]:
    """Verify a bearer token issued by the hosted auth service."""
    settings = get_settings()
    options = {"verify_aud": settings.jwt_audience is not None}
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )


def create_token(claims: dict[str, Any]) -> str:
    settings = get_settings()
    payload = dict(claims)
    if settings.jwt_audience is not None:
        payload.setdefault("aud", settings.jwt_audience)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
