"""Application exceptions and their FastAPI handlers.

Handlers render RFC 7807 problem+json (see ``problem_details``). Internal
detail (the ``details`` mapping, chained exceptions, tracebacks) is logged
for operators and never included in the response body.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from order_api.core.logging import get_logger
from order_api.core.problem_details import (
    ProblemDetailResponse,
    get_problem_type,
    problem_response,
)

logger = get_logger(__name__)

UNEXPECTED_ERROR_DETAIL = (
    "An unexpected error occurred. Please try again later or "
    "contact support with the request_id."
)


class OrderApiError(Exception):
    """Base exception for order API application errors.

    Subclasses pick their problem type through ``code``; the HTTP status
    and title follow from it unless given explicitly.
    """

    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application error.

        Args:
            message: Client-safe error message.
            code: Machine-readable error code (defaults to the class's).
            status_code: HTTP status code (defaults to the code's).
            details: Additional error context (logged only).
        """
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = code or self.code
        self.status_code = status_code or get_problem_type(self.code).status
        self.details = details or {}

    @property
    def title(self) -> str:
        return get_problem_type(self.code).title


class NotFoundError(OrderApiError):
    """Requested data does not exist (e.g. no orders for a fiscal year)."""

    code = "NOT_FOUND"
    default_message = "Resource not found"


class BadRequestError(OrderApiError):
    """Request is malformed; rejected before any database work."""

    code = "BAD_REQUEST"
    default_message = "Bad request"


class DatabaseError(OrderApiError):
    """Database operation error.

    Raised after the enclosing transaction has been rolled back.
    """

    code = "DATABASE_ERROR"
    default_message = "Database operation failed"


class ExportError(OrderApiError):
    """Query results could not be serialized for export."""

    code = "EXPORT_ERROR"
    default_message = "Failed to generate export"


# =============================================================================
# Exception Handlers
# =============================================================================


async def order_api_exception_handler(
    request: Request,
    exc: OrderApiError,
) -> ProblemDetailResponse:
    """Log an application error at a level matching its status and render it."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
        exc_info=exc.status_code >= 500,
    )

    return problem_response(
        exc.code,
        exc.message,
        status=exc.status_code,
        instance=request.url.path,
    )


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors to ``{field, message, type}`` with dotted paths."""
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "Validation failed")),
            "type": str(error.get("type", "unknown")),
        }
        for error in exc.errors()
    ]


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Handle request validation errors as 400 Bad Request.

    A rejected body never reaches the database. The 'errors' extension
    lists which fields need correction, e.g. ``data.3.timestamp``.
    """
    field_errors = _field_errors(exc)

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=request.url.path,
        fields=[e["field"] for e in field_errors][:20],
    )

    return problem_response(
        "VALIDATION_ERROR",
        f"Request validation failed with {len(field_errors)} error(s). "
        "Check the 'errors' field for details.",
        instance=request.url.path,
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Handle anything no other handler claimed; the response stays generic."""
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    return problem_response(
        "INTERNAL_ERROR",
        UNEXPECTED_ERROR_DETAIL,
        instance=request.url.path,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(OrderApiError, order_api_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
