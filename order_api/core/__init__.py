"""Core infrastructure: config, database, logging, middleware, exceptions."""

from order_api.core.config import Settings, get_settings
from order_api.core.database import Base, get_db
from order_api.core.logging import get_logger, request_id_ctx

__all__ = [
    "Base",
    "Settings",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
]
