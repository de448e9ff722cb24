"""
Record store client.

Talks to the store's generic collection/record REST API:

  GET    /api/collections/{collection}/records           — paginated list
  GET    /api/collections/{collection}/records/{id}      — single record
  POST   /api/collections/{collection}/records           — create
  DELETE /api/collections/{collection}/records/{id}      — delete
  GET    /api/health

404 responses raise RecordNotFound; every other HTTP or transport failure
raises StoreError.  The store itself is an external collaborator — this module
never caches or mutates records on its own.
"""

import logging
from typing import Any
from urllib.parse import quote as quote_path

import httpx

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class StoreError(Exception):
    """The record store could not be reached or rejected the request."""

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class RecordNotFound(StoreError):
    """The requested record (or first match of a filter) does not exist."""

    def __init__(self, detail: str = "Record not found"):
        super().__init__(detail, status_code=404)


def quote(value: str) -> str:
    """Quote a string literal for use inside a store filter expression."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _segment(value: str) -> str:
    """Encode value as exactly one URL path segment."""
    if value in ("", ".", ".."):
        raise RecordNotFound()
    return quote_path(value, safe="")


class RecordStore:
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        token: str = "",
        page_size: int = 200,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._page_size = page_size

    def _records_url(self, collection: str, record_id: str | None = None) -> str:
        url = f"{self._base_url}/api/collections/{_segment(collection)}/records"
        return f"{url}/{_segment(record_id)}" if record_id is not None else url

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.RequestError as exc:
            raise StoreError(f"Record store unreachable: {exc}") from exc

        if resp.status_code == 404:
            raise RecordNotFound()
        if resp.status_code >= 400:
            raise StoreError(f"Record store error: {resp.status_code}", status_code=resp.status_code)
        return resp

    async def list_records(self, collection: str, filter: str | None = None) -> list[Record]:
        """Return every record in a collection, following pagination to the end."""
        items: list[Record] = []
        page = 1
        while True:
            params: dict[str, Any] = {"page": page, "perPage": self._page_size}
            if filter:
                params["filter"] = filter
            resp = await self._request("GET", self._records_url(collection), params=params)
            data = resp.json()
            items.extend(data.get("items", []))
            if page >= data.get("totalPages", 1):
                return items
            page += 1

    async def get_record(self, collection: str, record_id: str) -> Record:
        resp = await self._request("GET", self._records_url(collection, record_id))
        return resp.json()

    async def find_first(self, collection: str, filter: str) -> Record:
        """Return the first record matching filter, or raise RecordNotFound."""
        params = {"page": 1, "perPage": 1, "skipTotal": 1, "filter": filter}
        resp = await self._request("GET", self._records_url(collection), params=params)
        items = resp.json().get("items", [])
        if not items:
            raise RecordNotFound()
        return items[0]

    async def create_record(self, collection: str, data: Record) -> Record:
        resp = await self._request("POST", self._records_url(collection), json=data)
        record = resp.json()
        logger.info("Created %s record %s", collection, record.get("id"))
        return record

    async def delete_record(self, collection: str, record_id: str) -> None:
        await self._request("DELETE", self._records_url(collection, record_id))
        logger.info("Deleted %s record %s", collection, record_id)

    async def health(self) -> None:
        await self._request("GET", f"{self._base_url}/api/health")
