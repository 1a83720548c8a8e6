"""Cache-aside helpers over Redis for small, read-mostly JSON payloads."""

import json
import logging
from typing import Any, Awaitable, Callable

log = logging.getLogger(__name__)


async def cached_json(
    redis,
    key: str,
    ttl: int,
    loader: Callable[[], Awaitable[Any]],
) -> tuple[Any, bool]:
    """
    Return ``(value, hit)``. On a miss ``loader`` runs and its result is
    stored for ``ttl`` seconds. Redis errors never fail the request; the
    loader result is served uncached instead.
    """
    if redis is not None:
        try:
            raw = await redis.get(key)
            if raw is not None:
                return json.loads(raw), True
        except Exception as e:
            log.warning("Cache read failed key=%s: %s", key, e)

    value = await loader()

    if redis is not None:
        try:
            await redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as e:
            log.warning("Cache write failed key=%s: %s", key, e)

    return value, False


async def invalidate(redis, *keys: str) -> None:
    if redis is None or not keys:
        return
    try:
        await redis.delete(*keys)
    except Exception as e:
        log.warning("Cache invalidate failed keys=%s: %s", keys, e)
