"""
Enable, disable or report row-level security on the marketplace tables.

Usage:
    python -m scripts.rls enable
    python -m scripts.rls disable
    python -m scripts.rls status

A failure on one table is printed and the remaining tables are still processed.
"""
import argparse
import asyncio
import sys

from sqlalchemy import bindparam, text

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import RLS_TABLES
from marketplace.db.session import script_session


async def toggle_rls(db, enable: bool, tables=RLS_TABLES) -> int:
    action = "ENABLE" if enable else "DISABLE"
    print(f"🔒 {action} row level security on {len(tables)} tables\n")

    failures = 0
    for table in tables:
        try:
            await db.execute(text(f'ALTER TABLE "{table}" {action} ROW LEVEL SECURITY'))
            await db.commit()
            print(f"  ✅ {table}")
        except Exception as e:
            await db.rollback()
            failures += 1
            print(f"  ❌ {table}: {e}")

    print(f"\nDone: {len(tables) - failures} ok, {failures} failed")
    return 1 if failures else 0


async def rls_status(db, tables=RLS_TABLES) -> int:
    stmt = text(
        "SELECT relname, relrowsecurity FROM pg_class "
        "WHERE relkind = 'r' AND relname IN :names"
    ).bindparams(bindparam("names", expanding=True))
    result = await db.execute(stmt, {"names": list(tables)})
    enabled = {row.relname: row.relrowsecurity for row in result}

    print("Row level security status:")
    print("-" * 40)
    for table in tables:
        if table not in enabled:
            state = "missing"
        else:
            state = "enabled" if enabled[table] else "disabled"
        print(f"  {table:20s} {state}")
    print("-" * 40)
    return 0


async def run(command: str) -> int:
    async with script_session() as db:
        if command == "status":
            return await rls_status(db)
        return await toggle_rls(db, enable=command == "enable")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Manage row level security")
    parser.add_argument("command", choices=["enable", "disable", "status"])
    args = parser.parse_args(argv)

    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run(args.command))


if __name__ == "__main__":
    sys.exit(main())
