"""Pydantic schemas for the order upload API."""

import re
from datetime import datetime
from datetime import date as date_type
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_UPLOAD_RECORDS = 50_000

# Spreadsheet exports write dates as 2024/05/01 or 2024/5/1
_SLASH_DATE = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})(?=$|[ T])")


class OrderRecord(BaseModel):
    """Single order line as submitted by the client.

    Field names are the wire contract. Unknown fields are rejected. Blank
    strings are read as missing values so that an empty spreadsheet cell and
    an absent key produce the same stored row.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    order_id: str = Field(..., min_length=1, max_length=50, description="Order identifier")
    order_date: date_type | None = None
    sales_dept: str | None = Field(None, max_length=100)
    customer_name: str | None = Field(None, max_length=200)
    customer_id: str | None = Field(None, max_length=50)
    product_code: str | None = Field(None, max_length=50)
    product_name: str | None = Field(None, max_length=200)
    quantity: int | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None
    currency: str | None = Field(None, max_length=10)
    delivery_date: date_type | None = None
    order_status: str | None = Field(None, max_length=30)
    jpy_value: Decimal | None = None
    timestamp: datetime | None = Field(
        None, description="When this version of the record was captured"
    )

    @field_validator(
        "order_date",
        "sales_dept",
        "customer_name",
        "customer_id",
        "product_code",
        "product_name",
        "quantity",
        "unit_price",
        "total_price",
        "currency",
        "delivery_date",
        "order_status",
        "jpy_value",
        "timestamp",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty or whitespace-only strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("order_date", "delivery_date", "timestamp", mode="before")
    @classmethod
    def accept_slash_dates(cls, v: Any) -> Any:
        """Rewrite a leading ``YYYY/M/D`` date to ISO ``YYYY-MM-DD``."""
        if isinstance(v, str):
            return _SLASH_DATE.sub(
                lambda m: f"{m[1]}-{int(m[2]):02d}-{int(m[3]):02d}", v.strip(), count=1
            )
        return v

    @field_validator("timestamp")
    @classmethod
    def drop_timezone(cls, v: datetime | None) -> datetime | None:
        """Keep the wall-clock time as written; the column has no time zone."""
        if v is not None and v.tzinfo is not None:
            return v.replace(tzinfo=None)
        return v


class OrderUploadRequest(BaseModel):
    """Request body for POST /api/orders/upload."""

    data: list[OrderRecord] = Field(
        ...,
        min_length=1,
        max_length=MAX_UPLOAD_RECORDS,
        description="Order records to store",
    )


class OrderUploadResponse(BaseModel):
    """Response body for POST /api/orders/upload."""

    message: str = Field(..., description="Confirmation text")
    received_count: int = Field(..., ge=0, description="Records in the request")
    inserted_count: int = Field(..., ge=0, description="New rows stored")
    skipped_count: int = Field(..., ge=0, description="Records already stored, skipped")
    reclassified_count: int = Field(..., ge=0, description="Rows whose flag was recomputed")
    duration_ms: float = Field(..., ge=0, description="Processing duration in milliseconds")
