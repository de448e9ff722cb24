from fastapi import APIRouter, Depends

from pushrelay.api.deps import get_store
from pushrelay.redis.client import redis_status
from pushrelay.store.client import RecordStore, StoreError

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(store: RecordStore = Depends(get_store)) -> dict:
    redis_state = await redis_status()
    try:
        await store.health()
        return {"status": "healthy", "store": "connected", "redis": redis_state}
    except StoreError as exc:
        return {"status": "unhealthy", "store": "disconnected", "redis": redis_state, "error": exc.detail}
