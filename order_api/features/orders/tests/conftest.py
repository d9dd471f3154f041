"""Fixtures for order storage integration tests.

The db_session fixture is repeated per feature because pytest only sees
conftest.py files on a test's own directory path.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from order_api.core.config import get_settings
from order_api.core.database import Base
from order_api.features.orders import models  # noqa: F401  registers Order on Base


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
def order_values() -> dict[str, Any]:
    """Column values for one complete order row."""
    return {
        "order_id": "SO-1001",
        "order_date": date(2024, 5, 1),
        "sales_dept": "東京営業部",
        "customer_name": "Acme Trading",
        "customer_id": "C001",
        "product_code": "P-100",
        "product_name": "Widget",
        "quantity": 10,
        "unit_price": Decimal("120.00"),
        "total_price": Decimal("1200.00"),
        "currency": "USD",
        "delivery_date": date(2024, 6, 15),
        "order_status": None,
        "jpy_value": Decimal("180000.00"),
        "timestamp": datetime(2024, 5, 1, 9, 30, 5),
    }
