"""
Set agent thumbnails from a JSON file mapping agent slug to image URL.

Usage:
    python -m scripts.update_agent_thumbnails thumbnails.json

Example file:
    {"lead-qualifier-x1y2z": "https://cdn.example.com/lead.png"}
"""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import select

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import Agent
from marketplace.db.session import script_session

log = logging.getLogger(__name__)


@dataclass
class ThumbnailReport:
    updated: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


async def update_thumbnails(db, mapping: dict[str, str]) -> ThumbnailReport:
    report = ThumbnailReport()
    for slug, url in mapping.items():
        try:
            agent = await db.scalar(select(Agent).where(Agent.slug == slug))
            if agent is None:
                report.missing.append(slug)
                print(f"  ⚠️  Agent not found: {slug}")
                continue
            agent.thumbnail_url = url
            await db.commit()
            report.updated.append(slug)
            print(f"  ✅ {slug}")
        except Exception as e:
            await db.rollback()
            log.error("Thumbnail update failed for %s: %s", slug, e)
            report.failed.append(slug)
            print(f"  ❌ {slug}: {e}")
    return report


def load_mapping(path: Path) -> dict[str, str]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Mapping file must contain a JSON object of slug -> url")
    return {str(k): str(v) for k, v in data.items()}


async def run(mapping: dict[str, str]) -> int:
    print(f"🖼️  Updating {len(mapping)} agent thumbnails\n")
    async with script_session() as db:
        report = await update_thumbnails(db, mapping)

    print()
    print(f"Updated: {len(report.updated)}")
    print(f"Missing: {len(report.missing)}")
    print(f"Failed:  {len(report.failed)}")
    return 1 if report.failed else 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Update agent thumbnails from a slug -> URL mapping")
    parser.add_argument("mapping", type=Path, help="Path to the JSON mapping file")
    args = parser.parse_args(argv)

    setup_logging(get_settings().LOG_LEVEL)
    try:
        mapping = load_mapping(args.mapping)
    except (OSError, ValueError) as e:
        print(f"❌ Could not read {args.mapping}: {e}")
        return 1
    return asyncio.run(run(mapping))


if __name__ == "__main__":
    sys.exit(main())
