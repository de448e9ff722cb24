"""
Dispatch ledger and hook failure channel, both kept in Redis.

The ledger records how often a notification was dispatched and what the push
services answered last time; it does not prevent re-sending.  The failure
channel is a capped list of creation-hook deliveries that never reached the
dispatch endpoint.

If Redis is unavailable every write is a no-op and every read returns empty.
"""

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from pushrelay.config import settings
from pushrelay.redis import keys
from pushrelay.redis.client import get_redis

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def record_dispatch(notification_id: str, results: Iterable[object]) -> None:
    """Bump the dispatch count and store the latest "<url>: <status>" lines."""
    r = get_redis()
    if r is None:
        return
    key = keys.dispatch_key(notification_id)
    lines = [str(x) for x in results]
    try:
        async with r.pipeline(transaction=True) as pipe:
            pipe.hincrby(key, "count", 1)
            pipe.hset(key, mapping={"last_at": _now(), "last_results": json.dumps(lines)})
            pipe.expire(key, settings.DISPATCH_HISTORY_TTL)
            await pipe.execute()
    except Exception as exc:
        logger.warning("ledger.record_dispatch failed: %s", exc)


async def get_dispatch(notification_id: str) -> dict[str, Any] | None:
    """Return {count, last_at, last_results} or None if never dispatched / Redis down."""
    r = get_redis()
    if r is None:
        return None
    try:
        data = await r.hgetall(keys.dispatch_key(notification_id))
    except Exception as exc:
        logger.warning("ledger.get_dispatch failed: %s", exc)
        return None
    if not data:
        return None
    return {
        "count": int(data.get("count", 0)),
        "last_at": data.get("last_at"),
        "last_results": json.loads(data.get("last_results") or "[]"),
    }


async def record_hook_failure(record_id: str, reason: str) -> None:
    r = get_redis()
    if r is None:
        return
    key = keys.hook_failures_key()
    entry = json.dumps({"id": record_id, "reason": reason, "at": _now()})
    try:
        await r.lpush(key, entry)
        await r.ltrim(key, 0, settings.HOOK_FAILURES_MAX - 1)
    except Exception as exc:
        logger.warning("ledger.record_hook_failure failed: %s", exc)


async def list_hook_failures(limit: int = 50) -> list[dict[str, Any]]:
    """Return the most recent hook failures, newest first."""
    if limit <= 0:
        return []
    r = get_redis()
    if r is None:
        return []
    try:
        entries = await r.lrange(keys.hook_failures_key(), 0, limit - 1)
    except Exception as exc:
        logger.warning("ledger.list_hook_failures failed: %s", exc)
        return []
    return [json.loads(e) for e in entries]
