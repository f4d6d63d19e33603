"""
Domain error taxonomy and global exception handlers.

Every failure leaves the API as ``{"error": <kind>, "detail": <message>,
"success": false}`` so clients can branch on ``error`` without parsing
messages, and no stack trace ever reaches a client.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for errors that map onto an HTTP response."""

    kind = "internal"
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class Unauthorized(LedgerError):
    kind = "unauthorized"
    status_code = 401


class Forbidden(LedgerError):
    kind = "forbidden"
    status_code = 403


class NotFound(LedgerError):
    kind = "not_found"
    status_code = 404


class ValidationFailed(LedgerError):
    kind = "validation"
    status_code = 422


class Conflict(LedgerError):
    kind = "conflict"
    status_code = 409


class Upstream(LedgerError):
    kind = "upstream"
    status_code = 503


_KIND_BY_STATUS = {
    400: "validation",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation",
    429: "rate_limited",
    503: "upstream",
}


def _error_body(kind: str, detail: object) -> dict:
    return {"error": kind, "detail": detail, "success": False}


async def _ledger_error_handler(_request: Request, exc: LedgerError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.kind, exc.detail),
        headers=headers,
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(_KIND_BY_STATUS.get(exc.status_code, "internal"), exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_body("validation", jsonable_encoder(exc.errors())),
    )


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=_error_body("rate_limited", f"Rate limit exceeded: {exc.detail}"),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content=_error_body("conflict", "Database constraint violation"),
    )


async def _operational_error_handler(_request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unreachable: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=503,
        content=_error_body("upstream", "Database unavailable"),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body("internal", "Internal database error"),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("internal", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(LedgerError, _ledger_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(OperationalError, _operational_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
