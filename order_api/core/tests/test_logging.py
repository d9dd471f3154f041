"""Tests for logging configuration."""

import logging

import pytest
import structlog

from order_api.core.config import Settings
from order_api.core.logging import (
    SQL_LOGGER,
    add_request_id,
    configure_logging,
    get_logger,
    request_id_ctx,
)


def test_get_logger_returns_bound_logger():
    """get_logger should return a structlog logger."""
    configure_logging()
    logger = get_logger("test")

    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "error")


def test_request_id_context_variable():
    """request_id_ctx should store and retrieve values."""
    assert request_id_ctx.get() is None

    token = request_id_ctx.set("test-id-123")
    assert request_id_ctx.get() == "test-id-123"

    request_id_ctx.reset(token)
    assert request_id_ctx.get() is None


def test_add_request_id_processor():
    """The processor copies the current request id into the event."""
    token = request_id_ctx.set("req-42")
    try:
        event = add_request_id(None, "info", {"event": "x"})
    finally:
        request_id_ctx.reset(token)

    assert event["request_id"] == "req-42"
    assert "request_id" not in add_request_id(None, "info", {"event": "x"})


def test_configure_logging_routes_stdlib_through_one_handler():
    """Root gets a single structlog-formatting handler; access logs are quieted."""
    configure_logging(Settings(log_format="console"))

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
    assert logging.getLogger("uvicorn.error").propagate is True


@pytest.mark.parametrize(("debug", "level"), [(True, logging.INFO), (False, logging.WARNING)])
def test_sql_logging_follows_debug(debug, level):
    """DEBUG turns on statement logging for SQLAlchemy."""
    configure_logging(Settings(debug=debug))

    assert logging.getLogger(SQL_LOGGER).level == level
