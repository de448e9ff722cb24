"""
Notification dispatch.

GET /dispatch?id=<notification id>  — deliver a notification to every subscriber
GET /dispatch/{id}/history          — dispatch count and last results (Redis ledger)
"""

import httpx
from fastapi import APIRouter, Depends, HTTPException, status

from pushrelay.api.deps import get_http_client, get_store
from pushrelay.redis import ledger
from pushrelay.services.dispatch import DispatchError, dispatch_notification
from pushrelay.store.client import RecordStore

router = APIRouter(prefix="/dispatch", tags=["dispatch"])


@router.get("", response_model=list[str])
async def dispatch(
    id: str | None = None,
    store: RecordStore = Depends(get_store),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> list[str]:
    """Fan a notification out to all subscriptions; returns "<url>: <status>" per delivery."""
    if not id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Missing notification id")

    try:
        results = await dispatch_notification(id, store=store, client=client)
    except DispatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    lines = [str(r) for r in results]
    await ledger.record_dispatch(id, lines)
    return lines


@router.get("/{notification_id}/history")
async def dispatch_history(notification_id: str) -> dict:
    history = await ledger.get_dispatch(notification_id)
    if history is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No dispatch history")
    return {"id": notification_id, **history}
