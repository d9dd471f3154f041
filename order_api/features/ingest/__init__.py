"""Ingest feature: deduplicated batch insert and countability reclassification."""

from order_api.features.ingest.reclassify import CountabilityPolicy, classify_countable
from order_api.features.ingest.routes import router
from order_api.features.ingest.schemas import (
    OrderRecord,
    OrderUploadRequest,
    OrderUploadResponse,
)
from order_api.features.ingest.service import IngestResult, ingest_order_batch

__all__ = [
    "CountabilityPolicy",
    "IngestResult",
    "OrderRecord",
    "OrderUploadRequest",
    "OrderUploadResponse",
    "classify_countable",
    "ingest_order_batch",
    "router",
]
