"""
Notification fan-out.

    fetch-subscriptions → fetch-notification → build-payloads (parallel)
        → submit (parallel) → collect-results

Payload construction and submission each run as a set of independent tasks
joined with asyncio.gather.  A failure for one subscriber is folded into the
result set (or dropped, for construction) and never aborts the others.
Nothing is retried and nothing is deduplicated: dispatching the same
notification twice delivers it twice.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from pushrelay.config import settings
from pushrelay.schemas.notification import Notification
from pushrelay.services.payload import PushPayload, build_push_payload
from pushrelay.store.client import RecordNotFound, RecordStore, StoreError

logger = logging.getLogger(__name__)

# Push service answers meaning the subscription is gone for good
EXPIRED_STATUSES = {404, 410}


class DispatchError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


@dataclass
class DeliveryResult:
    endpoint: str
    status_code: int | None = None
    error: str | None = None
    record_id: str | None = None

    def __str__(self) -> str:
        return f"{self.endpoint}: {self.status_code if self.error is None else 'error'}"


async def _build(message: dict[str, Any], record: Any) -> PushPayload | None:
    record_id = None
    try:
        record_id = record.get("id")
        return await asyncio.to_thread(
            build_push_payload,
            message,
            record.get("subscription") or {},
            vapid_private_key=settings.VAPID_PRIVATE_KEY,
            vapid_claims_email=settings.VAPID_CLAIMS_EMAIL,
            ttl=settings.PUSH_TTL,
            record_id=record_id,
        )
    except Exception as exc:
        logger.warning("Skipping subscription %s: payload construction failed: %s", record_id, exc)
        return None


async def _submit(client: httpx.AsyncClient, payload: PushPayload) -> DeliveryResult:
    try:
        resp = await client.post(
            payload.endpoint,
            content=payload.body,
            headers=payload.headers,
            timeout=settings.PUSH_TIMEOUT,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:  # InvalidURL is raised before sending
        logger.warning("Push delivery to %s failed: %s", payload.endpoint, exc)
        return DeliveryResult(payload.endpoint, error=str(exc) or exc.__class__.__name__, record_id=payload.record_id)

    if resp.status_code >= 400:
        logger.warning("Push service %s answered %s", payload.endpoint, resp.status_code)
    return DeliveryResult(payload.endpoint, status_code=resp.status_code, record_id=payload.record_id)


async def _prune_expired(store: RecordStore, results: list[DeliveryResult]) -> None:
    for result in results:
        if result.status_code not in EXPIRED_STATUSES or not result.record_id:
            continue
        try:
            await store.delete_record(settings.SUBSCRIPTIONS_COLLECTION, result.record_id)
            logger.info("Removed expired push subscription %s", result.record_id)
        except StoreError as exc:
            logger.warning("Could not remove expired subscription %s: %s", result.record_id, exc)


async def dispatch_notification(
    notification_id: str,
    *,
    store: RecordStore,
    client: httpx.AsyncClient,
) -> list[DeliveryResult]:
    """Deliver one notification record to every stored subscription.

    Raises DispatchError (404/500) when the subscriptions or the notification
    cannot be loaded.  Per-subscriber problems never raise.
    """
    if not settings.VAPID_PRIVATE_KEY or not settings.VAPID_PUBLIC_KEY:
        logger.warning("VAPID keys not configured — skipping dispatch of %s", notification_id)
        return []

    try:
        subscriptions = await store.list_records(settings.SUBSCRIPTIONS_COLLECTION)
    except StoreError as exc:
        raise DispatchError(500, f"Could not load subscriptions: {exc.detail}") from exc

    try:
        record = await store.get_record(settings.NOTIFICATIONS_COLLECTION, notification_id)
    except RecordNotFound as exc:
        raise DispatchError(404, "Notification not found") from exc
    except StoreError as exc:
        raise DispatchError(500, f"Could not load notification: {exc.detail}") from exc

    try:
        message = Notification.model_validate(record).to_message()
    except ValidationError as exc:
        raise DispatchError(500, f"Malformed notification record: {exc.error_count()} errors") from exc

    built = await asyncio.gather(*(_build(message, sub) for sub in subscriptions))
    payloads = [p for p in built if p is not None]

    results = list(await asyncio.gather(*(_submit(client, p) for p in payloads)))
    logger.info(
        "Dispatched notification %s: %d subscriptions, %d payloads, %d accepted",
        notification_id,
        len(subscriptions),
        len(payloads),
        sum(1 for r in results if r.status_code is not None and r.status_code < 400),
    )

    if settings.PRUNE_EXPIRED_SUBSCRIPTIONS:
        await _prune_expired(store, results)

    return results
