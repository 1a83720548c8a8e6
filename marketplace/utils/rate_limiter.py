"""
Redis-backed request throttling for public endpoints.

Each limited route names a preset; hits are recorded in a sorted set per
client so the window slides instead of resetting on a boundary. When Redis
is down the request goes through.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import wraps
from typing import Callable, NamedTuple, Optional

from fastapi import HTTPException, Request, Response
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from marketplace.core.config import Settings, get_settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    name: str
    max_requests: int
    window_seconds: int


PRESETS = {
    "search": RateLimit("search", 20, 60),
    "mutation": RateLimit("mutation", 10, 60),
    "strict": RateLimit("strict", 3, 900),
}


def public_preset(settings: Settings) -> RateLimit:
    # tunable per deployment, the rest are fixed
    return RateLimit("public", settings.RATE_LIMIT_PUBLIC_MAX, settings.RATE_LIMIT_PUBLIC_WINDOW)


class RateLimitDecision(NamedTuple):
    allowed: bool
    remaining: int
    retry_after: int


async def check_rate_limit(r, key: str, max_requests: int, window_seconds: int) -> RateLimitDecision:
    now = time.time()

    pipe = r.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
    pipe.zcard(key)
    pipe.expire(key, window_seconds + 1)
    _, _, hits, _ = await pipe.execute()

    if hits <= max_requests:
        return RateLimitDecision(True, max_requests - hits, 0)

    oldest = await r.zrange(key, 0, 0, withscores=True)
    retry_after = int(oldest[0][1] + window_seconds - now) + 1 if oldest else window_seconds
    return RateLimitDecision(False, 0, max(1, retry_after))


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def _limit_headers(limit: RateLimit, remaining: int) -> dict[str, str]:
    reset = datetime.fromtimestamp(time.time() + limit.window_seconds, tz=timezone.utc)
    return {
        "X-RateLimit-Limit": str(limit.max_requests),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": reset.isoformat(),
    }


def rate_limit(
    limit: RateLimit | Callable[[Settings], RateLimit],
    scope: str,
    key_func: Optional[Callable[[Request], str]] = None,
):
    """
    Throttle an endpoint with ``limit``, or with the preset a callable builds
    from the settings current at request time. The endpoint must accept
    ``request: Request``; Redis is taken from ``request.app.state.redis``.
    Over the limit the caller gets a 429 with ``Retry-After``.
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            if request is None:
                request = next((a for a in args if isinstance(a, Request)), None)

            settings = get_settings()
            if not settings.RATE_LIMIT_ENABLED or request is None:
                return await func(*args, **kwargs)

            active = limit if isinstance(limit, RateLimit) else limit(settings)

            key = f"rl:{active.name}:{scope}:{(key_func or client_identifier)(request)}"
            try:
                decision = await check_rate_limit(
                    request.app.state.redis, key, active.max_requests, active.window_seconds
                )
            except Exception as e:
                log.error("Rate limit check failed for %s: %s", key, e)
                return await func(*args, **kwargs)

            if not decision.allowed:
                log.warning("Rate limit exceeded: %s (%d/%ds)", key, active.max_requests, active.window_seconds)
                raise HTTPException(
                    status_code=HTTP_429_TOO_MANY_REQUESTS,
                    detail={
                        "error": "Too many requests",
                        "message": "Rate limit exceeded. Please try again later.",
                        "retryAfter": decision.retry_after,
                    },
                    headers={"Retry-After": str(decision.retry_after), **_limit_headers(active, 0)},
                )

            response = await func(*args, **kwargs)
            if isinstance(response, Response):
                response.headers.update(_limit_headers(active, decision.remaining))
            return response

        return wrapper
    return decorator
