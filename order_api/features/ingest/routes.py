"""Order upload route."""

import asyncio
import time

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from order_api.core.config import get_settings
from order_api.core.database import get_db
from order_api.core.exceptions import DatabaseError, OrderApiError
from order_api.core.logging import get_logger
from order_api.features.ingest.schemas import OrderUploadRequest, OrderUploadResponse
from order_api.features.ingest.service import ingest_order_batch

logger = get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

UPLOAD_CONFIRMATION = "Orders were added and reclassified successfully."


@router.post(
    "/upload",
    response_model=OrderUploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a batch of order records",
    description="""
Store a batch of order records and recompute which rows are countable.

**Idempotency:** a record whose every field matches an already stored row is
skipped, so re-sending a batch has no further effect.

**Atomicity:** the inserts and the reclassification of the whole table
commit together or not at all.
""",
)
async def upload_orders(
    request: OrderUploadRequest,
    db: AsyncSession = Depends(get_db),
) -> OrderUploadResponse:
    """Upload a batch of order records.

    Args:
        request: Upload body with the order records.
        db: Async database session from dependency.

    Returns:
        Confirmation with inserted, skipped and reclassified counts.

    Raises:
        DatabaseError: If the transaction failed and was rolled back.
    """
    settings = get_settings()
    start_time = time.perf_counter()

    logger.info("ingest.upload.request_received", record_count=len(request.data))

    try:
        async with asyncio.timeout(settings.ingest_timeout_seconds):
            result = await ingest_order_batch(db, request.data, settings)
    except OrderApiError:
        raise
    except Exception as e:
        logger.error(
            "ingest.upload.request_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to store the uploaded orders. See server logs for details.",
            details={"error": str(e), "error_type": type(e).__name__},
        ) from e

    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
    logger.info(
        "ingest.upload.request_completed",
        inserted=result.inserted_count,
        skipped=result.skipped_count,
        reclassified=result.reclassified_count,
        duration_ms=duration_ms,
    )

    return OrderUploadResponse(
        message=UPLOAD_CONFIRMATION,
        received_count=result.received_count,
        inserted_count=result.inserted_count,
        skipped_count=result.skipped_count,
        reclassified_count=result.reclassified_count,
        duration_ms=duration_ms,
    )
