"""
Insert or update the default agent categories.

Usage:
    python -m scripts.seed_categories
"""
import asyncio
import sys

from sqlalchemy import select

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import Category
from marketplace.db.session import script_session

DEFAULT_CATEGORIES = [
    {
        "name": "Customer Support",
        "slug": "customer-support",
        "description": "AI agents that automate customer service and support workflows",
        "display_order": 1,
    },
    {
        "name": "Sales & Marketing",
        "slug": "sales-marketing",
        "description": "Agents for lead generation, email campaigns, and sales automation",
        "display_order": 2,
    },
    {
        "name": "Data Analysis",
        "slug": "data-analysis",
        "description": "Intelligent agents for data processing, analysis, and reporting",
        "display_order": 3,
    },
    {
        "name": "Content Creation",
        "slug": "content-creation",
        "description": "AI-powered content writing, editing, and optimization agents",
        "display_order": 4,
    },
    {
        "name": "Development Tools",
        "slug": "development-tools",
        "description": "Coding assistants, code review, and development automation agents",
        "display_order": 5,
    },
    {
        "name": "Productivity",
        "slug": "productivity",
        "description": "Task automation, scheduling, and workflow optimization agents",
        "display_order": 6,
    },
]


async def seed(db, rows=DEFAULT_CATEGORIES) -> int:
    for row in rows:
        existing = await db.scalar(select(Category).where(Category.slug == row["slug"]))
        if existing:
            existing.name = row["name"]
            existing.description = row["description"]
            existing.display_order = row["display_order"]
            print(f"Updated category {row['slug']}")
        else:
            db.add(Category(**row))
            print(f"Inserted category {row['slug']}")
    await db.commit()
    print("Done.")
    return 0


async def run() -> int:
    async with script_session() as db:
        return await seed(db)


def main() -> int:
    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
