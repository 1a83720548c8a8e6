"""
Print every agent with its listing state and counters.

Usage:
    python -m scripts.verify_agents
"""
import asyncio
import sys

from sqlalchemy import select

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import Agent
from marketplace.db.session import script_session


async def print_agents(db) -> int:
    result = await db.execute(select(Agent).order_by(Agent.created_at.desc()))
    agents = result.scalars().all()

    print(f"📊 {len(agents)} agents\n")
    for agent in agents:
        print(f"  {agent.title}")
        print(f"    slug:      {agent.slug}")
        print(f"    status:    {agent.status.value}")
        print(f"    price:     ${agent.price}")
        print(f"    version:   {agent.version}")
        print(f"    views:     {agent.view_count}")
        print(f"    purchases: {agent.purchase_count}")
        print(f"    created:   {agent.created_at:%Y-%m-%d}")
        print()
    return 0


async def run() -> int:
    async with script_session() as db:
        return await print_agents(db)


def main() -> int:
    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
