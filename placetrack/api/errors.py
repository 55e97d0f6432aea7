"""Translate core error kinds into HTTP responses.

The core raises plain error kinds; this module is the only place that knows
about status codes. Bodies look like::

    {"error": "conflict", "message": "...", "details": [...]}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from placetrack.core.errors import (
    Conflict,
    InvalidState,
    NotFound,
    StoreError,
    TrackingError,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFound: 404,
    Conflict: 409,
    InvalidState: 400,
    ValidationFailed: 422,
}


def status_for(exc: Exception) -> int:
    if isinstance(exc, StoreError):
        return 503
    for error_class, status_code in STATUS_CODES.items():
        if isinstance(exc, error_class):
            return status_code
    return 500


def error_body(exc: Exception) -> dict:
    body = {"error": getattr(exc, "kind", "internal_error"), "message": getattr(exc, "message", str(exc))}
    if isinstance(exc, ValidationFailed) and exc.details:
        body["details"] = exc.details
    return body


async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.kind}: {exc.message}")
    return JSONResponse(status_code=status_code, content=error_body(exc))


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} -> 503: {exc.message}")
    return JSONResponse(status_code=503, content=error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrackingError, tracking_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
