"""
Record store hooks.

POST /hooks/notifications  — called by the store after a notification record is created
GET  /hooks/failures       — recent hook deliveries that never reached /dispatch
"""

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status

from pushrelay.api.deps import get_http_client
from pushrelay.config import settings
from pushrelay.core import events
from pushrelay.redis import ledger
from pushrelay.schemas.hook import HookResponse, RecordEvent
from pushrelay.services import hook as hook_service

router = APIRouter(prefix="/hooks", tags=["hooks"])


@router.post("/notifications", response_model=HookResponse)
async def notification_created(
    event: RecordEvent,
    response: Response,
    background_tasks: BackgroundTasks,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> HookResponse:
    """Acknowledge the store immediately, then trigger dispatch in the background."""
    if event.action != events.RECORD_CREATE:
        return HookResponse(status="ignored")
    if event.collection and event.collection != settings.NOTIFICATIONS_COLLECTION:
        return HookResponse(status="ignored")

    record_id = event.record_id
    if record_id is None:
        raise ValueError("Record event carries no record id")

    background_tasks.add_task(hook_service.notify_dispatch, record_id, client)
    response.status_code = status.HTTP_202_ACCEPTED
    return HookResponse(status="accepted", id=record_id)


@router.get("/failures")
async def hook_failures(limit: int = Query(50, ge=1, le=1000)) -> list[dict]:
    return await ledger.list_hook_failures(limit)
