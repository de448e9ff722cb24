"""
Subscription registration.

Stores a browser push subscription in the record store unless a record with
the same endpoint already exists.  The lookup-then-create is best-effort: two
concurrent registrations of a brand-new endpoint can still both create.
"""

import logging

from pushrelay.config import settings
from pushrelay.schemas.subscription import PushSubscription
from pushrelay.store.client import Record, RecordNotFound, RecordStore, quote

logger = logging.getLogger(__name__)


def endpoint_filter(endpoint: str) -> str:
    return f"endpoint = {quote(endpoint)}"


async def register_subscription(store: RecordStore, subscription: PushSubscription) -> tuple[Record, bool]:
    """Return (record, created).

    Only a not-found lookup leads to a create; any other store failure
    propagates to the caller.
    """
    collection = settings.SUBSCRIPTIONS_COLLECTION
    try:
        existing = await store.find_first(collection, endpoint_filter(subscription.endpoint))
        return existing, False
    except RecordNotFound:
        pass

    record = await store.create_record(
        collection,
        {"endpoint": subscription.endpoint, "subscription": subscription.model_dump()},
    )
    logger.info("Registered push subscription %s", record.get("id"))
    return record, True


async def unregister_subscription(store: RecordStore, endpoint: str) -> str:
    """Delete the subscription stored for endpoint; raises RecordNotFound if none."""
    collection = settings.SUBSCRIPTIONS_COLLECTION
    existing = await store.find_first(collection, endpoint_filter(endpoint))
    await store.delete_record(collection, existing["id"])
    return existing["id"]
