#!/usr/bin/env python
"""Check database connectivity and the order schema.

Usage:
    python scripts/check_db.py
"""

import asyncio
import sys

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from order_api.core.config import get_settings
from order_api.features.orders.models import (
    COMPOSITE_KEY_CONSTRAINT,
    ORDERS_VIEW_NAME,
    Order,
)


async def check_database() -> int:
    """Verify the connection, server version and order schema objects."""
    settings = get_settings()

    print("Order API - Database Connectivity Check")
    print("=" * 39)
    print(f"Database URL: {settings.database_url.rsplit('@', 1)[-1]}")  # Hide credentials
    print()

    engine = create_async_engine(settings.database_url)
    missing = 0

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            assert result.scalar() == 1
            print("[OK] Basic connectivity")

            result = await conn.execute(text("SHOW server_version_num"))
            version_num = int(result.scalar() or 0)
            if version_num >= 150000:
                print(f"[OK] PostgreSQL {version_num // 10000}")
            else:
                print(f"[WARN] PostgreSQL {version_num // 10000}: NULLS NOT DISTINCT needs 15+")

            checks = {
                f"table {Order.__tablename__}": (
                    "SELECT 1 FROM information_schema.tables WHERE table_name = :name",
                    Order.__tablename__,
                ),
                f"constraint {COMPOSITE_KEY_CONSTRAINT}": (
                    "SELECT 1 FROM pg_constraint WHERE conname = :name",
                    COMPOSITE_KEY_CONSTRAINT,
                ),
                f"view {ORDERS_VIEW_NAME}": (
                    "SELECT 1 FROM information_schema.views WHERE table_name = :name",
                    ORDERS_VIEW_NAME,
                ),
            }
            for label, (query, name) in checks.items():
                found = (await conn.execute(text(query), {"name": name})).scalar()
                if found:
                    print(f"[OK] {label}")
                else:
                    missing += 1
                    print(f"[WARN] {label} missing. Run: python scripts/init_db.py")

        print()
        print("Database check completed" + (" with warnings." if missing else " successfully!"))
        return 0

    except Exception as e:
        print(f"[FAIL] Connection failed: {e}")
        print()
        print("Troubleshooting:")
        print("  1. Ensure PostgreSQL is running")
        print("  2. Check DATABASE_URL in .env file")
        return 1

    finally:
        await engine.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
