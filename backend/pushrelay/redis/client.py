"""
Redis connection behind the dispatch ledger and the hook failure channel.

Redis is optional.  With REDIS_URL empty, or the server unreachable at
startup, get_redis() returns None and the ledger turns into a no-op; push
delivery never depends on it.
"""

import logging

import redis.asyncio as aioredis

from pushrelay.config import settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def init_redis() -> bool:
    """Connect the ledger store.  Returns True if the ledger is enabled."""
    global _client
    if not settings.REDIS_URL:
        logger.info("REDIS_URL is empty — dispatch ledger disabled")
        return False
    client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except aioredis.RedisError as exc:
        logger.warning("Redis unreachable at %s (%s) — dispatch ledger disabled", settings.REDIS_URL, exc)
        await client.aclose()
        return False
    _client = client
    logger.info("Dispatch ledger using Redis at %s", settings.REDIS_URL)
    return True


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> aioredis.Redis | None:
    """Return the ledger client, or None while the ledger is disabled."""
    return _client


async def redis_status() -> str:
    """One of "disabled", "connected" or "unreachable", for the health check."""
    r = get_redis()
    if r is None:
        return "disabled"
    try:
        await r.ping()
    except aioredis.RedisError as exc:
        logger.warning("Redis ping failed: %s", exc)
        return "unreachable"
    return "connected"
