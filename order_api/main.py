"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy import text

from order_api.core.config import get_settings
from order_api.core.database import dispose_engine, get_engine
from order_api.core.exceptions import register_exception_handlers
from order_api.core.health import router as health_router
from order_api.core.logging import configure_logging, get_logger
from order_api.core.middleware import RequestIdMiddleware
from order_api.features.export.routes import router as export_router
from order_api.features.ingest.routes import router as ingest_router

logger = get_logger(__name__)


async def check_database_connection() -> bool:
    """Try one round trip to the database and log the outcome.

    Returns:
        True if the database answered.
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(
            "app.database_unreachable",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False

    logger.info("app.database_connected")
    return True


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown.

    The connection pool lives exactly as long as the application.

    Args:
        _app: FastAPI application instance (unused, required by lifespan protocol).

    Yields:
        None after startup, disposes the connection pool on shutdown.
    """
    settings = get_settings()

    # Startup
    configure_logging()
    logger.info(
        "app.startup_started",
        app_name=settings.app_name,
        app_env=settings.app_env,
        debug=settings.debug,
    )
    # Log only; the service still starts so readiness can report the outage
    await check_database_connection()

    yield

    # Shutdown
    await dispose_engine()
    logger.info("app.shutdown_completed")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Order record ingestion with countability reclassification "
        "and fiscal-year CSV export",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(ingest_router)
    app.include_router(export_router)

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "order_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
