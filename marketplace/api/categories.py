import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.db.session import get_db
from marketplace.services.categories import category_agent_counts, list_categories
from marketplace.utils.cache import cached_json
from marketplace.utils.rate_limiter import public_preset, rate_limit
from marketplace.utils.redis_pool import get_redis

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["categories"])

CATEGORIES_CACHE_KEY = "categories:all"
CATEGORY_STATS_CACHE_KEY = "categories:stats"


@router.get("")
async def get_categories(
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    settings = get_settings()

    async def load():
        started = time.perf_counter()
        rows = await list_categories(db)
        log.info("categories query took %.1fms (%d rows)", (time.perf_counter() - started) * 1000, len(rows))
        return rows

    try:
        data, _ = await cached_json(redis, CATEGORIES_CACHE_KEY, settings.CATEGORIES_CACHE_TTL, load)
    except Exception:
        log.error("Failed to fetch categories", exc_info=True)
        return JSONResponse(
            {"success": False, "error": "Failed to fetch categories"},
            status_code=500,
        )

    return JSONResponse(
        {"success": True, "data": data},
        headers={
            "Cache-Control": (
                f"public, s-maxage={settings.CATEGORIES_CACHE_TTL}, "
                f"stale-while-revalidate={settings.CATEGORIES_STALE_TTL}"
            )
        },
    )


@router.get("/stats")
@rate_limit(public_preset, scope="categories-stats")
async def get_category_stats(
    request: Request,
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Agent counts for every category in one call (landing page grid)."""
    settings = get_settings()
    try:
        counts, _ = await cached_json(
            redis,
            CATEGORY_STATS_CACHE_KEY,
            settings.CATEGORY_STATS_CACHE_TTL,
            lambda: category_agent_counts(db),
        )
    except Exception:
        log.error("Failed to fetch category statistics", exc_info=True)
        return JSONResponse(
            {"success": False, "error": "Failed to fetch category statistics", "counts": {}},
            status_code=500,
        )

    ttl = settings.CATEGORY_STATS_CACHE_TTL
    return JSONResponse(
        {"success": True, "counts": counts},
        headers={"Cache-Control": f"public, s-maxage={ttl}, stale-while-revalidate={ttl * 2}"},
    )
