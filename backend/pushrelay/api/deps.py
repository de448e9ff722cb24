import httpx
from fastapi import Depends, Request

from pushrelay.config import settings
from pushrelay.store.client import RecordStore


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared outbound HTTP client opened in the app lifespan."""
    return request.app.state.http_client


def get_store(client: httpx.AsyncClient = Depends(get_http_client)) -> RecordStore:
    return RecordStore(
        client,
        settings.STORE_URL,
        token=settings.STORE_TOKEN,
        page_size=settings.STORE_PAGE_SIZE,
    )
