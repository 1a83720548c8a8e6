"""
Check the database connection and print row counts for every table.

Usage:
    python -m scripts.verify_database
"""
import asyncio
import sys

from sqlalchemy import func, select, text

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import Base
from marketplace.db.session import script_session


async def verify(db) -> int:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        print(f"❌ Database connection failed: {e}")
        return 1
    print("✅ Database connection OK\n")

    failures = 0
    print("Row counts:")
    print("-" * 40)
    for table in Base.metadata.sorted_tables:
        try:
            count = await db.scalar(select(func.count()).select_from(table))
            print(f"  {table.name:20s} {count:>8,}")
        except Exception as e:
            await db.rollback()
            failures += 1
            print(f"  {table.name:20s} ERROR {e}")
    print("-" * 40)
    return 1 if failures else 0


async def run() -> int:
    async with script_session() as db:
        return await verify(db)


def main() -> int:
    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
