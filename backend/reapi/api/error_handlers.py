"""Error Handlers — global exception handlers for the ReAPI app.

Invariants:
    - ReapiError → its own envelope and status (to_response())
    - RequestValidationError → 400 malformed envelope with field-level details
    - Exception (catch-all) → 500, never leaks internal details
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from reapi.core.errors import ReapiError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_reapi_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_reapi_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ReapiError)
    async def reapi_error_handler(request: Request, exc: ReapiError):
        """Handle all ReAPI domain/infrastructure errors."""
        log = logger.error if exc.http_status >= 500 else logger.info
        log(
            f"ReapiError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "collection": exc.context.collection,
                "operation": exc.context.operation,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors with structured response."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": "Request was malformed.",
                "error": {
                    "code": "VALIDATION_ERROR",
                    "category": "validation",
                    "severity": ErrorSeverity.WARNING.value,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "details": [
                        {
                            "field": ".".join(str(loc) for loc in e["loc"]),
                            "message": e["msg"],
                            "type": e["type"],
                        }
                        for e in exc.errors()
                    ],
                },
            },
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "An internal server error occurred.",
                "error": {
                    "code": "INTERNAL_ERROR",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            },
        )
