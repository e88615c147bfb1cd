"""Application error taxonomy and the handlers that render it.

Every error reaching a client has the same body, ``{"success": false, "error": ...}``.
Authorization and external-service failures always carry a generic message; the
underlying reason is logged server-side only.
"""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger

logger = get_logger()


class AppError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Request failed"

    def __init__(self, message: str | None = None, *, details: dict | None = None) -> None:
        self.message = message or self.public_message
        self.details = details
        super().__init__(self.message)

    @property
    def client_message(self) -> str:
        return self.message


class ValidationFailed(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    public_message = "Invalid input"


class NotAuthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Authentication required"

    @property
    def client_message(self) -> str:
        return self.public_message


class NotPermitted(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    public_message = "Not permitted"

    @property
    def client_message(self) -> str:
        return self.public_message


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    public_message = "Conflict"


class InvalidTransition(Conflict):
    public_message = "Status change not allowed"


class InsufficientStock(ValidationFailed):
    public_message = "Insufficient stock"


class NoRateAvailable(NotFound):
    public_message = "No rate available"


class ExternalServiceError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    public_message = "External service unavailable"

    @property
    def client_message(self) -> str:
        return self.public_message


def error_response(status_code: int, message: str, details: dict | None = None) -> JSONResponse:
    content: dict = {"success": False, "error": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "app_error",
        error=type(exc).__name__,
        message=exc.message,
        path=request.url.path,
        method=request.method,
    )
    details = exc.details if isinstance(exc, ValidationFailed) else None
    return error_response(exc.status_code, exc.client_message, details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("http_error", status=exc.status_code, detail=str(exc.detail), path=request.url.path)
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": " -> ".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    logger.warning("validation_error", path=request.url.path, errors=errors)
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid input", {"errors": errors})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
