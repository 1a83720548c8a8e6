"""
List agents with their moderation status, or move one agent to a new status.

Usage:
    python -m scripts.manage_agent_status list
    python -m scripts.manage_agent_status update <agent-id> <status> [reason]

Examples:
    python -m scripts.manage_agent_status update <agent-id> APPROVED
    python -m scripts.manage_agent_status update <agent-id> REJECTED "Title needs improvement"
"""
import argparse
import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from marketplace.core.config import get_settings
from marketplace.core.errors import AgentValidationError
from marketplace.core.logging import setup_logging
from marketplace.db.models import Agent, AgentStatus
from marketplace.db.session import script_session
from marketplace.services.agents import update_agent_status

VALID_STATUSES = [status.value for status in AgentStatus]


async def list_agents(db) -> int:
    result = await db.execute(
        select(Agent).options(selectinload(Agent.seller)).order_by(Agent.created_at.desc())
    )
    agents = result.scalars().all()

    print("\n📋 All Agents:\n")
    print(f"{'ID':36s} | {'Title':30s} | {'Status':13s} | Seller")
    print("─" * 110)
    for agent in agents:
        seller = agent.seller.email if agent.seller else "-"
        print(f"{agent.id:36s} | {agent.title[:30]:30s} | {agent.status.value:13s} | {seller}")
        if agent.rejection_reason:
            print(f"  └─ Rejection: {agent.rejection_reason}")
    print()
    return 0


async def change_status(db, agent_id: str, status_name: str, reason: str | None) -> int:
    try:
        status = AgentStatus(status_name.strip().upper())
    except ValueError:
        print(f"❌ Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
        return 1

    agent = await db.get(Agent, agent_id)
    if agent is None:
        print(f"❌ Agent not found with ID: {agent_id}")
        return 1

    old_status = agent.status
    try:
        await update_agent_status(db, agent, status, reason)
    except AgentValidationError as e:
        print(f"❌ {e}")
        return 1

    print("\n✅ Agent status updated:\n")
    print(f"   Title: {agent.title}")
    print(f"   Old Status: {old_status.value}")
    print(f"   New Status: {agent.status.value}")
    if reason:
        print(f"   Rejection Reason: {reason}")
    print()
    return 0


async def run(args) -> int:
    async with script_session() as db:
        if args.command == "list":
            return await list_agents(db)
        return await change_status(db, args.agent_id, args.status, args.reason)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Agent status manager")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List all agents with their status")
    update = sub.add_parser("update", help="Update an agent's status")
    update.add_argument("agent_id")
    update.add_argument("status", help=f"One of {', '.join(VALID_STATUSES)}")
    update.add_argument("reason", nargs="?", help="Rejection reason (required for REJECTED)")
    args = parser.parse_args(argv)

    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
