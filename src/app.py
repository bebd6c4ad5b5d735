"""Lastmile delivery FastAPI application.

Processes commands synchronously over HTTP and pushes change notices over
websockets. Events are dispatched in-process after each commit, so the
change hub in this process sees every change.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay (memory stores by default,
# PostgreSQL in "production").
from contextlib import asynccontextmanager

from delivery.changefeed import reset_hub
from delivery.domain import delivery
from delivery.utils.logging import add_context, clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

delivery.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Stop subscription workers on shutdown
    reset_hub()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Lastmile Delivery API",
    description="Order fulfillment coordination: dispatch, partner responses, live tracking",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_DOMAIN_PREFIXES = (
    "/orders",
    "/delivery-requests",
    "/vendors",
    "/partner-applications",
    "/partners",
    "/boards",
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the delivery domain context for API requests."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with delivery.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from delivery.api import (  # noqa: E402
    application_router,
    board_router,
    order_router,
    partner_router,
    request_router,
    stream_router,
    vendor_router,
)
from delivery.api.errors import register_error_handlers  # noqa: E402

for router in (
    order_router,
    request_router,
    vendor_router,
    application_router,
    partner_router,
    board_router,
    stream_router,
):
    app.include_router(router)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": delivery.name})
