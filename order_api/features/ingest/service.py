"""Ingestion pipeline: deduplicated insert plus global reclassification."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from order_api.core.config import Settings, get_settings
from order_api.core.exceptions import BadRequestError
from order_api.core.logging import get_logger
from order_api.features.ingest.reclassify import (
    CountabilityPolicy,
    OrderVersion,
    build_reclassify_statement,
    classify_countable,
)
from order_api.features.ingest.schemas import OrderRecord
from order_api.features.orders.models import COMPOSITE_KEY_CONSTRAINT, Order

logger = get_logger(__name__)


@dataclass
class IngestResult:
    """Result of one ingested batch."""

    received_count: int = 0
    inserted_count: int = 0
    reclassified_count: int = 0

    @property
    def skipped_count(self) -> int:
        """Records that were already stored and therefore skipped."""
        return self.received_count - self.inserted_count


async def acquire_ingest_lock(db: AsyncSession, lock_key: int) -> None:
    """Serialize ingestions for the rest of the current transaction.

    Reclassification reads and rewrites the whole table, so two batches
    must not interleave between insert and reclassify. The advisory lock is
    released automatically on commit or rollback.
    """
    await db.execute(select(func.pg_advisory_xact_lock(lock_key)))


async def insert_orders(
    db: AsyncSession,
    records: Sequence[OrderRecord],
    batch_size: int,
) -> int:
    """Insert records, skipping any whose composite key is already stored.

    Each chunk is one ``INSERT ... ON CONFLICT ... DO NOTHING`` statement,
    so duplicates are detected by the database (including duplicates within
    the same chunk) rather than by a prior read.

    Args:
        db: Async database session.
        records: Validated order records.
        batch_size: Rows per INSERT statement.

    Returns:
        Number of rows actually inserted.
    """
    inserted = 0
    for start in range(0, len(records), batch_size):
        chunk: list[dict[str, Any]] = [r.model_dump() for r in records[start : start + batch_size]]
        stmt = (
            pg_insert(Order)
            .values(chunk)
            .on_conflict_do_nothing(constraint=COMPOSITE_KEY_CONSTRAINT)
            .returning(Order.id)
        )
        result = await db.execute(stmt)
        inserted += len(result.fetchall())

    logger.info(
        "ingest.orders.insert_completed",
        received=len(records),
        inserted=inserted,
        skipped=len(records) - inserted,
    )
    return inserted


async def reclassify_orders(
    db: AsyncSession,
    policy: CountabilityPolicy,
    strategy: Literal["sql", "python"] = "sql",
) -> int:
    """Recompute ``is_countable`` for every stored row.

    Args:
        db: Async database session.
        policy: Status literals and reserved customer prefix.
        strategy: ``"sql"`` runs one window-function UPDATE in the database;
            ``"python"`` loads the rows, classifies them in memory and writes
            the flags back by primary key.

    Returns:
        Number of rows whose flag was rewritten.
    """
    logger.info("ingest.orders.reclassify_started", strategy=strategy)

    if strategy == "sql":
        result = await db.execute(build_reclassify_statement(policy))
        affected = int(result.rowcount)  # type: ignore[attr-defined]
    else:
        rows = await db.execute(
            select(
                Order.id,
                Order.order_id,
                Order.customer_id,
                Order.order_status,
                Order.timestamp,
            )
        )
        versions = [OrderVersion(*row) for row in rows]
        flags = classify_countable(versions, policy)
        if flags:
            await db.execute(
                update(Order),
                [{"id": row_id, "is_countable": flag} for row_id, flag in flags.items()],
            )
        affected = len(flags)

    logger.info("ingest.orders.reclassify_completed", strategy=strategy, affected=affected)
    return affected


async def ingest_order_batch(
    db: AsyncSession,
    records: Sequence[OrderRecord],
    settings: Settings | None = None,
) -> IngestResult:
    """Store a batch of orders and reclassify the table, atomically.

    Lock, insert, reclassify and commit run in one transaction. If any step
    fails the transaction is rolled back, so neither the new rows nor any
    flag change become visible, and the error is re-raised.

    Args:
        db: Async database session with no transaction in progress.
        records: Validated order records; must not be empty.
        settings: Application settings (defaults to the cached singleton).

    Returns:
        IngestResult with received, inserted and reclassified counts.

    Raises:
        BadRequestError: If ``records`` is empty. The database is not touched.
    """
    if not records:
        raise BadRequestError("No order records to upload")

    settings = settings or get_settings()
    policy = CountabilityPolicy.from_settings(settings)

    logger.info("ingest.orders.batch_started", batch_size=len(records))

    try:
        await acquire_ingest_lock(db, settings.ingest_lock_key)
        inserted = await insert_orders(db, records, settings.ingest_batch_size)
        reclassified = await reclassify_orders(db, policy, settings.reclassify_strategy)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(
            "ingest.orders.batch_rolled_back",
            batch_size=len(records),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise

    result = IngestResult(
        received_count=len(records),
        inserted_count=inserted,
        reclassified_count=reclassified,
    )
    logger.info(
        "ingest.orders.batch_committed",
        received=result.received_count,
        inserted=result.inserted_count,
        skipped=result.skipped_count,
        reclassified=result.reclassified_count,
    )
    return result
