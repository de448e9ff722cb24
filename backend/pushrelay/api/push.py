"""
Web Push subscription management.

GET    /push/vapid-public-key  — return the VAPID public key for frontend subscription
POST   /push/subscribe          — store a push subscription unless its endpoint is known
DELETE /push/unsubscribe        — remove a push subscription
POST   /push/preview            — render a raw push message as the browser would
"""

from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status

from pushrelay.api.deps import get_store
from pushrelay.config import settings
from pushrelay.schemas.notification import DisplayedNotificationResponse
from pushrelay.schemas.subscription import PushSubscription, SubscribeResponse, UnsubscribeRequest
from pushrelay.services.registrar import register_subscription, unregister_subscription
from pushrelay.services.renderer import NotificationRenderer
from pushrelay.store.client import RecordStore

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key")
async def get_vapid_public_key() -> dict:
    """Return the VAPID public key so the frontend can subscribe."""
    return {"key": settings.VAPID_PUBLIC_KEY}


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    data: PushSubscription,
    response: Response,
    store: RecordStore = Depends(get_store),
) -> SubscribeResponse:
    """Persist a browser push subscription once per endpoint."""
    record, created = await register_subscription(store, data)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return SubscribeResponse(id=str(record["id"]), created=created)


@router.delete("/unsubscribe")
async def unsubscribe(
    data: UnsubscribeRequest,
    store: RecordStore = Depends(get_store),
) -> dict:
    """Remove a push subscription."""
    record_id = await unregister_subscription(store, data.endpoint)
    return {"status": "unsubscribed", "id": record_id}


@router.post(
    "/preview",
    response_model=DisplayedNotificationResponse,
    responses={204: {"description": "Message has no title; nothing would be shown"}},
)
async def preview(request: Request) -> Any:
    """Render a raw push message body the way the service worker would."""
    renderer = NotificationRenderer(show=_discard)
    shown = await renderer.handle_push(await request.body())
    if shown is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return DisplayedNotificationResponse(title=shown.title, options=shown.options)


async def _discard(title: str, options: dict) -> None:
    return None
