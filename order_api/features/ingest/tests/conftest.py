"""Feature-specific test fixtures for ingest module."""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from order_api.core.config import get_settings
from order_api.core.database import Base, get_db
from order_api.features.ingest.reclassify import CountabilityPolicy, OrderVersion
from order_api.features.ingest.schemas import OrderRecord
from order_api.main import app


def make_record_payload(**overrides: Any) -> dict[str, Any]:
    """Wire-format order record with every field populated."""
    payload: dict[str, Any] = {
        "order_id": "SO-1001",
        "order_date": "2024-05-01",
        "sales_dept": "東京営業部",
        "customer_name": "Acme Trading",
        "customer_id": "C001",
        "product_code": "P-100",
        "product_name": "Widget",
        "quantity": 10,
        "unit_price": "120.00",
        "total_price": "1200.00",
        "currency": "USD",
        "delivery_date": "2024-06-15",
        "order_status": "",
        "jpy_value": "180000.00",
        "timestamp": "2024-05-01T09:30:05",
    }
    payload.update(overrides)
    return payload


def version(
    row_id: int,
    order_id: str = "SO-1",
    *,
    status: str | None = None,
    ts: datetime | None = datetime(2024, 5, 1, 9, 0, 0),
    customer_id: str | None = "C001",
) -> OrderVersion:
    """Shorthand for a stored row as seen by the classifier."""
    return OrderVersion(
        id=row_id,
        order_id=order_id,
        customer_id=customer_id,
        order_status=status,
        timestamp=ts,
    )


@pytest.fixture
def policy() -> CountabilityPolicy:
    """Default classification policy."""
    return CountabilityPolicy()


@pytest.fixture
def sample_record() -> OrderRecord:
    """A valid order record."""
    return OrderRecord.model_validate(make_record_payload())


@pytest.fixture
def sample_records() -> list[OrderRecord]:
    """Two versions of one order plus an unrelated order."""
    return [
        OrderRecord.model_validate(make_record_payload()),
        OrderRecord.model_validate(
            make_record_payload(
                order_status="changed", quantity=12, timestamp="2024-05-02T10:00:00"
            )
        ),
        OrderRecord.model_validate(make_record_payload(order_id="SO-1002", customer_id="C002")),
    ]


@pytest.fixture
def record_payload():
    """Factory for wire-format order records."""
    return make_record_payload


@pytest.fixture
def make_version():
    """Factory for stored rows as seen by the classifier."""
    return version


@pytest.fixture
async def client():
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def mock_db():
    """Replace the session dependency with a mock for the test's duration."""
    session = AsyncMock()

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield session
    app.dependency_overrides.clear()


@pytest.fixture
async def db_session():
    """Create async database session for integration tests.

    Creates the table and view, provides a session, and drops both after.
    Requires PostgreSQL 15+ reachable at DATABASE_URL.
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def api_db(db_session: AsyncSession):
    """Route requests to the integration session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield db_session
    app.dependency_overrides.clear()
