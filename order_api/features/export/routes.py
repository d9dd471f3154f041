"""Fiscal-year CSV export route."""

import asyncio
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from order_api.core.config import get_settings
from order_api.core.database import get_db
from order_api.core.exceptions import DatabaseError, OrderApiError
from order_api.core.logging import get_logger
from order_api.features.export.service import export_current_fiscal_year

logger = get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


@router.get(
    "/export-current-fiscal-year",
    response_class=Response,
    summary="Export the current fiscal year's orders as CSV",
    responses={
        200: {"content": {"text/csv": {}}, "description": "CSV with a header row"},
        404: {"description": "No orders in the current fiscal year"},
    },
)
async def export_orders_current_fiscal_year(
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Export the current fiscal year's orders as CSV.

    Args:
        db: Async database session from dependency.

    Returns:
        CSV response.

    Raises:
        NotFoundError: If the fiscal year has no rows.
        DatabaseError: If the query failed.
    """
    settings = get_settings()

    try:
        async with asyncio.timeout(settings.export_timeout_seconds):
            export = await export_current_fiscal_year(db)
    except OrderApiError:
        raise
    except Exception as e:
        logger.error(
            "export.fiscal_year.request_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Error generating CSV data.",
            details={"error": str(e), "error_type": type(e).__name__},
        ) from e

    # RFC 5987 encoding; the label is not latin-1
    filename = quote(f"orders_{export.fiscal_year}.csv")
    return Response(
        content=export.csv_text,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}"},
    )
