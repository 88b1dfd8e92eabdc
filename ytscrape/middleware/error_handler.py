"""Global error hierarchy and FastAPI exception handlers.

All service-specific errors extend ScraperError. The transcript error family
(``ytscrape.transcripts.errors``) builds on the same base, so the handlers here
render every failure (proxy pool or transcript) as the same JSON envelope:
{ success, data, error, meta }.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class ScraperError(Exception):
    """Base error for all service-specific errors."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ValidationError(ScraperError):
    """Payload / query validation failures, with field-level details."""

    status_code = 422
    message = "Validation error"


class AuthenticationError(ScraperError):
    """Invalid or missing bearer token on a protected endpoint."""

    status_code = 401
    message = "Unauthorized"


class InvalidVideoReference(ScraperError):
    """The caller supplied something that is neither a video id nor a known video URL."""

    status_code = 400
    message = "That does not look like a valid YouTube video id or URL"


class UnsupportedProxyProtocol(ScraperError):
    """A proxy pool was configured with a protocol other than http/https."""

    status_code = 400
    message = "Unsupported proxy protocol"

    def __init__(self, protocol: str) -> None:
        super().__init__(
            f"Protocol {protocol} is not supported, please choose between http or https",
            protocol=protocol,
        )


class NoProxiesFound(ScraperError):
    """A full provider sweep produced zero usable proxies."""

    status_code = 503
    message = "No proxies were found for the current filter settings."

    def __init__(self, protocol: str = "http") -> None:
        message = self.__class__.message
        if protocol == "https":
            message += (
                " Tip: https proxies can be rare; recommend setting protocol to http"
            )
        super().__init__(message, protocol=protocol)


class NoProxyAvailable(ScraperError):
    """The pool has no proxy to hand out (not refreshed yet, or empty)."""

    status_code = 503
    message = "No proxy available"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------


def _envelope(
    status_code: int,
    error: str,
    meta: dict | None = None,
) -> JSONResponse:
    """Build a JSON envelope error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "data": None,
            "error": error,
            "meta": meta,
        },
    )


async def _scraper_error_handler(_request: Request, exc: ScraperError) -> JSONResponse:
    """Handle ScraperError subclasses."""
    meta = exc.details if exc.details else None
    return _envelope(exc.status_code, exc.message, meta=meta)


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI / Pydantic RequestValidationError (422)."""
    field_errors = [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return _envelope(
        status_code=422,
        error="Validation error",
        meta={"fields": field_errors},
    )


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: log the traceback and return a generic 500."""
    logger.error(
        "Unhandled exception: %s\n%s",
        exc,
        traceback.format_exc(),
    )
    return _envelope(status_code=500, error="Internal server error")


# ---------------------------------------------------------------------------
# Registration helper
# ---------------------------------------------------------------------------


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(ScraperError, _scraper_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)  # type: ignore[arg-type]
