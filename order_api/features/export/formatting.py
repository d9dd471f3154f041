"""Row formatting and CSV serialization for order exports.

The downstream spreadsheet import expects a few exact shapes:

- date columns as ``YYYY-MM-DD``;
- the capture ``timestamp`` as ``YYYYMMDDHH:MM:SS`` (no separator between
  date and time, colons inside the time), e.g. ``2024050109:30:05``;
- booleans as ``1`` / empty, nulls as empty cells.
"""

import csv
import io
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from order_api.core.logging import get_logger

logger = get_logger(__name__)

TIMESTAMP_FIELD = "timestamp"
TIMESTAMP_FORMAT = "%Y%m%d%H:%M:%S"
INVALID_TIMESTAMP = "Invalid Date"


def format_timestamp(value: Any) -> str:
    """Render the capture timestamp in the export's mixed format."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    logger.warning(
        "export.format.invalid_timestamp",
        value=repr(value),
        value_type=type(value).__name__,
    )
    return INVALID_TIMESTAMP


def format_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Format one exported row without modifying the input mapping.

    Args:
        record: Column name to value, in view column order.

    Returns:
        New dict with the same keys in the same order.
    """
    formatted: dict[str, Any] = {}
    for key, value in record.items():
        if key == TIMESTAMP_FIELD:
            formatted[key] = format_timestamp(value)
        elif isinstance(value, date) and not isinstance(value, datetime):
            formatted[key] = value.isoformat()
        else:
            formatted[key] = value
    return formatted


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


def records_to_csv(records: Sequence[Mapping[str, Any]]) -> str:
    """Serialize records to CSV text with a header row.

    The header is the first record's keys, in order; later records are
    written in that column order.

    Args:
        records: Formatted rows; must not be empty.

    Returns:
        CSV text, one ``\\n``-terminated line per row plus the header.
    """
    columns = list(records[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for record in records:
        writer.writerow([_cell(record.get(column)) for column in columns])
    return buffer.getvalue()
