#!/usr/bin/env python
"""Create the order schema (table, composite key, view) in an empty database.

Usage:
    # Create missing objects
    python scripts/init_db.py

    # Drop and recreate everything (destroys stored orders)
    python scripts/init_db.py --recreate --confirm
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.ext.asyncio import create_async_engine

from order_api.core.config import get_settings
from order_api.core.database import Base
from order_api.features.orders import models  # noqa: F401  registers Order on Base


async def init_database(recreate: bool) -> int:
    """Create all tables and the orders view.

    Args:
        recreate: Drop existing objects first.

    Returns:
        Process exit code.
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url)

    try:
        async with engine.begin() as conn:
            if recreate:
                await conn.run_sync(Base.metadata.drop_all)
                print("[OK] Dropped existing schema")
            await conn.run_sync(Base.metadata.create_all)
        print("[OK] Schema ready")
        return 0
    except Exception as e:
        print(f"[FAIL] Schema creation failed: {e}")
        return 1
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the order API schema.")
    parser.add_argument("--recreate", action="store_true", help="drop and recreate all objects")
    parser.add_argument("--confirm", action="store_true", help="required with --recreate")
    args = parser.parse_args()

    if args.recreate and not args.confirm:
        parser.error("--recreate deletes every stored order; pass --confirm to proceed")

    sys.exit(asyncio.run(init_database(args.recreate)))


if __name__ == "__main__":
    main()
