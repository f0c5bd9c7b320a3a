"""Shared ``redis.asyncio`` pool.

Two users: the per-holder trade rate limiter and the graduation publisher.
Nothing authoritative is kept here; curve state, positions and both
ledgers live in PostgreSQL, so losing Redis degrades rate limiting and push
notifications only (missed notifications are replayed by the recovery
sweep).
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _redis_pool


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
