from __future__ import annotations

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging, get_logger
from app.core.redis import redis_client
from app.routers import agreements, functions, inventory, invoices, orders, quotes, session, shipment_requests

settings = get_settings()

configure_logging(settings.log_level)
logger = get_logger()

FUNCTION_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await redis_client.close()


app = FastAPI(
    title=settings.app_name,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session.router, prefix=settings.api_prefix)
app.include_router(quotes.router, prefix=settings.api_prefix)
app.include_router(agreements.router, prefix=settings.api_prefix)
app.include_router(agreements.surcharge_router, prefix=settings.api_prefix)
app.include_router(shipment_requests.router, prefix=settings.api_prefix)
app.include_router(orders.router, prefix=settings.api_prefix)
app.include_router(inventory.router, prefix=settings.api_prefix)
app.include_router(invoices.router, prefix=settings.api_prefix)
app.include_router(functions.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"service": settings.app_name}


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    logger.info(
        "request",
        path=str(request.url.path),
        method=request.method,
        status=response.status_code,
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def function_cors(request: Request, call_next):
    if not request.url.path.startswith(f"{settings.api_prefix}/functions"):
        return await call_next(request)
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=FUNCTION_CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(FUNCTION_CORS_HEADERS)
    return response
