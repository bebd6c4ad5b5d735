"""HTTP mapping of delivery errors.

Typed business errors keep their class name as ``code`` so clients can tell
"try again" (``retryable``) from "this isn't allowed". Storage failures
collapse into a single ``TransientFailure`` code.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from delivery.errors import (
    TRANSIENT_ERRORS,
    AlreadyResponded,
    CancellationWindowClosed,
    DeliveryError,
    NoAvailablePartner,
    NotAuthorized,
    StaleStateError,
    VendorLocationUnset,
)

logger = structlog.get_logger(__name__)

STATUS_CODES = {
    StaleStateError: 409,
    CancellationWindowClosed: 409,
    AlreadyResponded: 409,
    NotAuthorized: 403,
    NoAvailablePartner: 503,
    VendorLocationUnset: 422,
}


def error_body(message: str, code: str, retryable: bool) -> dict:
    return {"error": message, "code": code, "retryable": retryable}


def register_error_handlers(app: FastAPI) -> None:
    """Install Protean's default handlers, then the delivery-specific ones."""
    register_exception_handlers(app)

    @app.exception_handler(DeliveryError)
    async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
        status_code = next(
            (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
            409,
        )
        logger.warning(
            "Request refused",
            path=request.url.path,
            code=exc.code,
            status_code=status_code,
            error=str(exc),
        )
        return JSONResponse(
            status_code=status_code,
            content=error_body(str(exc), exc.code, exc.retryable),
        )

    @app.exception_handler(ExpectedVersionError)
    async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
        logger.warning("Concurrent update lost", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=409,
            content=error_body(str(exc), StaleStateError.__name__, False),
        )

    async def transient_failure_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Transient storage failure", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=503,
            content=error_body("Temporary failure, try again", "TransientFailure", True),
        )

    for exc_class in TRANSIENT_ERRORS:
        app.add_exception_handler(exc_class, transient_failure_handler)
