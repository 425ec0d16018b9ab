# =============================================================================
# Rate Limiter — Per-Owner Request Budget in Redis
# =============================================================================
#
# Each verified owner gets `rate_limit_rpm` requests per rolling minute
# across all /api/cars endpoints. Request timestamps live in a sorted set
# at `ratelimit:owner:<owner_id>`; timestamps older than a minute are
# dropped before counting.
#
# The limiter is optional infrastructure: with rate limiting disabled, or
# with Redis unreachable, requests are let through (the latter logs a
# warning).
# =============================================================================

from __future__ import annotations

import logging
import time

from fastapi import HTTPException

from app.config import settings

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60

_redis_client = None


def _get_rate_limit_redis():
    """Lazily create and cache the async Redis client."""
    global _redis_client
    if _redis_client is None:
        import redis.asyncio as aioredis
        _redis_client = aioredis.from_url(
            settings.rate_limit_redis_url,
            decode_responses=True,
        )
    return _redis_client


def _owner_key(owner_id: str) -> str:
    return f"ratelimit:owner:{owner_id}"


async def _count_and_record(owner_id: str) -> int:
    """Record this request; return how many came before it in the window."""
    key = _owner_key(owner_id)
    now = time.time()

    pipe = _get_rate_limit_redis().pipeline()
    pipe.zremrangebyscore(key, 0, now - WINDOW_SECONDS)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, WINDOW_SECONDS + 10)
    _, previous, _, _ = await pipe.execute()
    return previous


async def check_rate_limit(owner_id: str | None) -> None:
    """
    Count a request against the owner's per-minute budget.

    Raises:
        HTTPException 429: Budget used up (Retry-After header set).
    """
    if owner_id is None or not settings.rate_limit_enabled:
        return

    try:
        previous = await _count_and_record(owner_id)
    except Exception as e:
        logger.warning("Rate limiter unavailable, allowing owner=%s: %s", owner_id, e)
        return

    if previous >= settings.rate_limit_rpm:
        logger.info("Rate limit hit for owner=%s", owner_id)
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Limit: {settings.rate_limit_rpm} requests/minute.",
            headers={"Retry-After": str(WINDOW_SECONDS)},
        )
