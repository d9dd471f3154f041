"""Health check and banner endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from order_api.core.database import get_db
from order_api.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

BANNER = "Order Import API (JSON)"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "unhealthy"]
    database: Literal["connected", "disconnected"] | None = None


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def banner() -> str:
    """Plain-text banner for checking the service from a browser."""
    return BANNER


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe; does not touch the database."""
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Readiness probe: verifies a pooled connection can run a query.

    Args:
        db: Database session dependency.

    Returns:
        Health status with database state.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        await db.rollback()
        return HealthResponse(status="unhealthy", database="disconnected")

    return HealthResponse(status="ok", database="connected")
