"""Per-holder trade rate limiting (fixed one-minute window in Redis).

Key pattern: "ratelimit:trade:{holder_id}". The first INCR of a window sets
the 60s expiry; any count above the limit raises RateLimitError (9001).
"""

import logging

import redis.asyncio as aioredis
from fastapi import Depends

from config.settings import settings
from src.lp_common.errors import RateLimitError
from src.lp_common.redis_client import get_redis
from src.lp_gateway.auth.dependencies import Principal, get_current_holder

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60


async def check_rate_limit(
    redis: aioredis.Redis, key: str, limit: int, window_seconds: int = _WINDOW_SECONDS
) -> int:
    """Count one hit against ``key``; returns the count or raises RateLimitError."""
    count = int(await redis.incr(key))
    if count == 1:
        await redis.expire(key, window_seconds)
    if count > limit:
        logger.warning("Rate limit hit: key=%s count=%d limit=%d", key, count, limit)
        raise RateLimitError()
    return count


async def enforce_trade_rate_limit(
    principal: Principal = Depends(get_current_holder),
) -> Principal:
    """FastAPI dependency guarding the trade endpoint."""
    redis = await get_redis()
    await check_rate_limit(
        redis,
        f"ratelimit:trade:{principal.holder_id}",
        settings.TRADE_RATE_LIMIT_PER_MINUTE,
    )
    return principal
