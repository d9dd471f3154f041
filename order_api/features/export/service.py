"""Fiscal-year export service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from order_api.core.exceptions import ExportError, NotFoundError
from order_api.core.logging import get_logger
from order_api.features.export.formatting import format_record, records_to_csv
from order_api.features.orders.models import (
    FISCAL_YEAR_LABEL_SUFFIX,
    FISCAL_YEAR_START_MONTH,
    orders_view,
)

logger = get_logger(__name__)


@dataclass
class FiscalYearExport:
    """CSV export of one fiscal year."""

    fiscal_year: str
    row_count: int
    csv_text: str


def fiscal_year_label(today: date) -> str:
    """Label of the fiscal year containing ``today``.

    Fiscal years start in April and carry the calendar year they start in:
    2024-04-01 through 2025-03-31 is ``2024年度``.
    """
    year = today.year if today.month >= FISCAL_YEAR_START_MONTH else today.year - 1
    return f"{year}{FISCAL_YEAR_LABEL_SUFFIX}"


async def fetch_fiscal_year_rows(db: AsyncSession, label: str) -> list[dict[str, Any]]:
    """Read every ``orders_view`` row labelled with the given fiscal year.

    Args:
        db: Async database session.
        label: Fiscal-year label as produced by :func:`fiscal_year_label`.

    Returns:
        Rows as dicts keyed in view column order.
    """
    stmt = select(orders_view).where(orders_view.c.fiscal_year == label)
    result = await db.execute(stmt)
    return [dict(row) for row in result.mappings()]


async def export_current_fiscal_year(
    db: AsyncSession,
    today: date | None = None,
) -> FiscalYearExport:
    """Export the current fiscal year's orders as CSV.

    Args:
        db: Async database session.
        today: Reference date (defaults to the server's current date).

    Returns:
        FiscalYearExport with the label, row count and CSV text.

    Raises:
        NotFoundError: If no rows belong to the fiscal year.
        ExportError: If the rows could not be serialized.
    """
    label = fiscal_year_label(today or date.today())
    logger.info("export.fiscal_year.started", fiscal_year=label)

    records = await fetch_fiscal_year_rows(db, label)
    if not records:
        logger.info("export.fiscal_year.not_found", fiscal_year=label)
        raise NotFoundError(
            message=f"No order data found for fiscal year {label}.",
            details={"fiscal_year": label},
        )

    try:
        csv_text = records_to_csv([format_record(r) for r in records])
    except Exception as e:
        raise ExportError(
            message="Error generating CSV data.",
            details={"fiscal_year": label, "error": str(e)},
        ) from e

    logger.info("export.fiscal_year.completed", fiscal_year=label, row_count=len(records))
    return FiscalYearExport(fiscal_year=label, row_count=len(records), csv_text=csv_text)
