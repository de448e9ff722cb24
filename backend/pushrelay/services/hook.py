"""
Creation hook delivery.

Forwards a freshly created notification record to the dispatch endpoint as
``GET {DISPATCH_URL}?id=<record id>``.  Runs as a background task after the
store has already been answered, and never raises.

With HOOK_MAX_ATTEMPTS=1 (the default) this is fire-and-forget.  Higher values
retry connection errors and 5xx answers with exponential backoff; a request
that still fails is logged and pushed onto the hook failure channel.  A read
timeout is never retried, since dispatch has already received the request.
"""

import asyncio
import logging

import httpx

from pushrelay.config import settings
from pushrelay.redis import ledger

logger = logging.getLogger(__name__)


def compute_backoff(attempt: int) -> float:
    """Exponential backoff: base, 2×base, 4×base … capped at HOOK_MAX_BACKOFF_SECONDS."""
    delay = settings.HOOK_BACKOFF_SECONDS * (2.0 ** max(0, attempt - 1))
    return min(delay, settings.HOOK_MAX_BACKOFF_SECONDS)


async def notify_dispatch(record_id: str, client: httpx.AsyncClient) -> bool:
    """Ask the dispatch endpoint to deliver record_id.  Returns True on a 2xx/3xx answer."""
    attempts = max(1, settings.HOOK_MAX_ATTEMPTS)
    reason = ""
    for attempt in range(1, attempts + 1):
        try:
            resp = await client.get(
                settings.DISPATCH_URL,
                params={"id": record_id},
                timeout=settings.HOOK_TIMEOUT,
            )
        except httpx.ReadTimeout:
            # Dispatch already has the request and may still be fanning out
            logger.warning("Dispatch for notification %s still running after %ss", record_id, settings.HOOK_TIMEOUT)
            return True
        except httpx.RequestError as exc:
            reason = f"transport error: {exc}"
        else:
            if resp.status_code < 400:
                logger.info("Dispatch triggered for notification %s (%s)", record_id, resp.status_code)
                return True
            reason = f"dispatch answered {resp.status_code}"
            if resp.status_code < 500:
                break  # 4xx = permanent failure

        if attempt < attempts:
            delay = compute_backoff(attempt)
            logger.warning("Dispatch trigger for %s failed (%s), retry in %.1fs", record_id, reason, delay)
            await asyncio.sleep(delay)

    logger.warning("Dispatch trigger for notification %s dropped: %s", record_id, reason)
    await ledger.record_hook_failure(record_id, reason)
    return False
