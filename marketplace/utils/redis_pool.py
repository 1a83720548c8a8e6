"""
Redis Connection Pool Module
============================
Async Redis client construction with:
- Health checks to detect stale connections
- Socket timeouts to prevent hung operations
- Retry logic for transient failures
- Explicit lifecycle: built in the app lifespan, closed at shutdown
"""

import logging

import redis.asyncio as redis
from fastapi import Request
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import (
    BusyLoadingError,
    ConnectionError,
    TimeoutError,
)

from marketplace.core.config import Settings

log = logging.getLogger(__name__)

# Pool configuration constants
POOL_MAX_CONNECTIONS = 20       # per worker process
SOCKET_TIMEOUT = 2.0            # cache reads must not stall a request
SOCKET_CONNECT_TIMEOUT = 2.0
HEALTH_CHECK_INTERVAL = 30
RETRY_ATTEMPTS = 2


def _create_retry() -> Retry:
    return Retry(
        retries=RETRY_ATTEMPTS,
        backoff=ExponentialBackoff(cap=0.5, base=0.1),
        supported_errors=(ConnectionError, TimeoutError, BusyLoadingError),
    )


def create_redis(settings: Settings) -> redis.Redis:
    """
    Builds a Redis client backed by its own connection pool.

    decode_responses is on so cached JSON comes back as str.
    """
    pool = redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        max_connections=POOL_MAX_CONNECTIONS,
        socket_timeout=SOCKET_TIMEOUT,
        socket_connect_timeout=SOCKET_CONNECT_TIMEOUT,
        health_check_interval=HEALTH_CHECK_INTERVAL,
        decode_responses=True,
    )
    log.info(
        "Redis connection pool initialized "
        f"(max_connections={POOL_MAX_CONNECTIONS}, "
        f"health_check_interval={HEALTH_CHECK_INTERVAL}s)"
    )
    return redis.Redis(
        connection_pool=pool,
        retry=_create_retry(),
        retry_on_error=[ConnectionError, TimeoutError, BusyLoadingError],
    )


async def close_redis(client: redis.Redis | None) -> None:
    if client is None:
        return
    await client.connection_pool.disconnect()
    log.info("Redis connection pool closed")


def get_redis(request: Request):
    return request.app.state.redis
