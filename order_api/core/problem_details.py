"""RFC 7807 Problem Details for HTTP APIs.

Every error the service returns, whether a rejected upload, an empty fiscal
year or a failed transaction, is rendered through this module so clients
get one machine-readable error shape.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from dataclasses import dataclass
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from order_api.core.logging import request_id_ctx

PROBLEM_JSON = "application/problem+json"

# Relative type URIs; they only need to be stable, not resolvable.
ERROR_TYPE_BASE = "/errors"


@dataclass(frozen=True)
class ProblemType:
    """One category of error the API can report."""

    code: str
    slug: str
    title: str
    status: int

    @property
    def uri(self) -> str:
        return f"{ERROR_TYPE_BASE}/{self.slug}"


PROBLEM_TYPES: dict[str, ProblemType] = {
    p.code: p
    for p in (
        ProblemType("BAD_REQUEST", "bad-request", "Bad Request", 400),
        ProblemType("VALIDATION_ERROR", "validation", "Bad Request", 400),
        ProblemType("NOT_FOUND", "not-found", "Not Found", 404),
        ProblemType("DATABASE_ERROR", "database", "Database Error", 500),
        ProblemType("EXPORT_ERROR", "export", "Export Error", 500),
        ProblemType("INTERNAL_ERROR", "internal", "Internal Server Error", 500),
    )
}


def get_problem_type(code: str) -> ProblemType:
    """Look up a problem type, falling back to INTERNAL_ERROR for unknown codes."""
    return PROBLEM_TYPES.get(code, PROBLEM_TYPES["INTERNAL_ERROR"])


class ProblemDetail(BaseModel):
    """RFC 7807 body plus the ``code``, ``request_id`` and ``errors`` extensions."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(..., description="Short summary of the problem type.")
    status: int = Field(..., ge=400, le=599, description="HTTP status code.")
    detail: str | None = Field(None, description="Explanation of this occurrence.")
    instance: str | None = Field(None, description="Request path that produced the problem.")
    code: str | None = Field(None, description="Machine-readable error code.")
    request_id: str | None = Field(
        None,
        description="Request correlation ID. Include in support requests.",
    )
    errors: list[dict[str, Any]] | None = Field(
        None,
        description="Field-level errors for a rejected request body.",
    )


class ProblemDetailResponse(JSONResponse):
    """JSON response with RFC 7807 content type."""

    media_type = PROBLEM_JSON


def problem_response(
    code: str,
    detail: str | None = None,
    *,
    status: int | None = None,
    instance: str | None = None,
    errors: list[dict[str, Any]] | None = None,
) -> ProblemDetailResponse:
    """Render a problem+json response for an error code.

    Args:
        code: Key into PROBLEM_TYPES; selects type URI, title and default status.
        detail: Explanation of this occurrence, safe to show to clients.
        status: Overrides the problem type's status.
        instance: Request path.
        errors: Field-level validation errors.

    Returns:
        Response carrying the current request id.
    """
    problem_type = get_problem_type(code)
    status = status or problem_type.status

    problem = ProblemDetail(
        type=problem_type.uri,
        title=problem_type.title,
        status=status,
        detail=detail,
        instance=instance,
        code=problem_type.code,
        request_id=request_id_ctx.get(),
        errors=errors,
    )
    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(exclude_none=True),
    )
