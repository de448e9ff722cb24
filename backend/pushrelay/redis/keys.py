"""
Namespaced Redis key helpers.

Every key is prefixed with REDIS_KEY_PREFIX so several relays (or other apps)
can share one Redis instance:
  {prefix}:dispatch:{notification_id}   hash — count, last_at, last_results
  {prefix}:hook:failures                list — newest hook failure first
"""

from pushrelay.config import settings


def dispatch_key(notification_id: str) -> str:
    return f"{settings.REDIS_KEY_PREFIX}:dispatch:{notification_id}"


def hook_failures_key() -> str:
    return f"{settings.REDIS_KEY_PREFIX}:hook:failures"
