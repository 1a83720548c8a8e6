# =============================================================================
# tests/test_cache.py - Cache-aside and Rate Limit Tests
# =============================================================================

import json
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from redis.exceptions import ConnectionError as RedisConnectionError

from marketplace.core.config import get_settings
from marketplace.utils.cache import cached_json, invalidate
from marketplace.utils.rate_limiter import (
    RateLimit,
    check_rate_limit,
    client_identifier,
    public_preset,
    rate_limit,
)
from tests.conftest import FakeRedis


async def test_miss_then_hit():
    redis = FakeRedis()
    loader = AsyncMock(return_value=[{"id": "1", "name": "Sales", "slug": "sales"}])

    value, hit = await cached_json(redis, "k", 60, loader)
    assert hit is False
    assert json.loads(redis.store["k"]) == value

    again, hit = await cached_json(redis, "k", 60, loader)
    assert hit is True
    assert again == value
    loader.assert_awaited_once()


async def test_redis_errors_fall_through_to_loader():
    redis = MagicMock()
    redis.get = AsyncMock(side_effect=RedisConnectionError("down"))
    redis.set = AsyncMock(side_effect=RedisConnectionError("down"))

    value, hit = await cached_json(redis, "k", 60, AsyncMock(return_value={"a": 1}))

    assert value == {"a": 1}
    assert hit is False


async def test_no_redis_configured():
    value, hit = await cached_json(None, "k", 60, AsyncMock(return_value=3))
    assert (value, hit) == (3, False)


async def test_invalidate_removes_keys():
    redis = FakeRedis()
    redis.store.update({"a": "1", "b": "2"})
    await invalidate(redis, "a")
    assert redis.store == {"b": "2"}


def _redis_with_count(count, oldest=None):
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, 1, count, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    redis.zrange = AsyncMock(return_value=oldest or [])
    return redis


async def test_rate_limit_allows_under_limit():
    allowed, remaining, retry_after = await check_rate_limit(_redis_with_count(3), "rl:x", 30, 60)
    assert allowed is True
    assert remaining == 27
    assert retry_after == 0


async def test_rate_limit_blocks_over_limit():
    allowed, remaining, retry_after = await check_rate_limit(_redis_with_count(31), "rl:x", 30, 60)
    assert allowed is False
    assert remaining == 0
    assert retry_after >= 1


def _request(redis):
    app = MagicMock()
    app.state.redis = redis
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/api/categories/stats",
        "headers": [(b"x-forwarded-for", b"203.0.113.9, 10.0.0.1")],
        "client": ("10.0.0.1", 5000),
        "app": app,
    })


def test_client_identifier_prefers_forwarded_for():
    assert client_identifier(_request(None)) == "203.0.113.9"


async def test_decorator_rejects_with_retry_after(monkeypatch):
    monkeypatch.setattr(get_settings(), "RATE_LIMIT_ENABLED", True)

    @rate_limit(RateLimit("public", 30, 60), scope="stats")
    async def endpoint(request: Request):
        return JSONResponse({"ok": True})

    with pytest.raises(HTTPException) as exc:
        await endpoint(request=_request(_redis_with_count(31, oldest=[("m", time.time())])))

    assert exc.value.status_code == 429
    assert exc.value.detail["error"] == "Too many requests"
    assert exc.value.headers["Retry-After"] == str(exc.value.detail["retryAfter"])


async def test_decorator_adds_limit_headers(monkeypatch):
    monkeypatch.setattr(get_settings(), "RATE_LIMIT_ENABLED", True)

    @rate_limit(RateLimit("public", 30, 60), scope="stats")
    async def endpoint(request: Request):
        return JSONResponse({"ok": True})

    response = await endpoint(request=_request(_redis_with_count(5)))

    assert response.headers["X-RateLimit-Limit"] == "30"
    assert response.headers["X-RateLimit-Remaining"] == "25"


async def test_decorator_fails_open_when_redis_down(monkeypatch):
    monkeypatch.setattr(get_settings(), "RATE_LIMIT_ENABLED", True)
    redis = MagicMock()
    redis.pipeline.side_effect = RedisConnectionError("down")

    @rate_limit(RateLimit("public", 30, 60), scope="stats")
    async def endpoint(request: Request):
        return {"ok": True}

    assert await endpoint(request=_request(redis)) == {"ok": True}


async def test_settings_preset_is_resolved_per_request(monkeypatch):
    @rate_limit(public_preset, scope="stats")
    async def endpoint(request: Request):
        return JSONResponse({"ok": True})

    monkeypatch.setattr(get_settings(), "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(get_settings(), "RATE_LIMIT_PUBLIC_MAX", 7)

    response = await endpoint(request=_request(_redis_with_count(2)))

    assert response.headers["X-RateLimit-Limit"] == "7"
    assert response.headers["X-RateLimit-Remaining"] == "5"
