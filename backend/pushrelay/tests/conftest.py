"""
Pytest fixtures shared across all test modules.

The record store, the push services and the dispatch endpoint seen by the
creation hook all live behind one httpx.MockTransport (FakeBackend), so no
real store, Redis or push service is required.
"""

import base64
import json
import math
import os
import re
from urllib.parse import unquote

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def generate_vapid_keys() -> tuple[str, str]:
    """Return (private, public) VAPID keys in the raw base64url form web-push uses."""
    key = ec.generate_private_key(ec.SECP256R1())
    private = key.private_numbers().private_value.to_bytes(32, "big")
    public = key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    return b64url(private), b64url(public)


VAPID_PRIVATE_KEY, VAPID_PUBLIC_KEY = generate_vapid_keys()

# Set env vars BEFORE any pushrelay module is imported
os.environ["VAPID_PRIVATE_KEY"] = VAPID_PRIVATE_KEY
os.environ["VAPID_PUBLIC_KEY"] = VAPID_PUBLIC_KEY
os.environ["VAPID_CLAIMS_EMAIL"] = "mailto:ops@example.com"
os.environ["STORE_URL"] = "http://store.test"
os.environ["STORE_TOKEN"] = ""
os.environ["DISPATCH_URL"] = "http://relay.test/api/dispatch"
os.environ["HOOK_MAX_ATTEMPTS"] = "1"
os.environ["HOOK_BACKOFF_SECONDS"] = "0"
os.environ["REDIS_URL"] = ""
os.environ["PRUNE_EXPIRED_SUBSCRIPTIONS"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

# Import app modules AFTER env vars are set
from pushrelay.api.deps import get_http_client  # noqa: E402
from pushrelay.main import app  # noqa: E402
from pushrelay.store.client import RecordStore  # noqa: E402

STORE_HOST = "store.test"
RELAY_HOST = "relay.test"


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


def make_subscription(endpoint: str) -> tuple[dict, ec.EllipticCurvePrivateKey, bytes]:
    """Return (subscription JSON, browser private key, auth secret) for a fake browser."""
    browser_key = ec.generate_private_key(ec.SECP256R1())
    p256dh = browser_key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    auth = os.urandom(16)
    subscription = {
        "endpoint": endpoint,
        "expirationTime": None,
        "keys": {"p256dh": b64url(p256dh), "auth": b64url(auth)},
    }
    return subscription, browser_key, auth


def subscription_record(endpoint: str, **overrides) -> dict:
    subscription, _, _ = make_subscription(endpoint)
    subscription.update(overrides)
    return {"endpoint": endpoint, "subscription": subscription}


# ---------------------------------------------------------------------------
# Fake record store + push services
# ---------------------------------------------------------------------------


class FakeBackend:
    """In-memory record store, push services and dispatch endpoint."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {"subscriptions": {}, "notifications": {}}
        self.requests: list[httpx.Request] = []
        self.push_status: dict[str, int] = {}  # endpoint → status, default 201
        self.push_errors: set[str] = set()  # endpoints that refuse connections
        self.failing_collections: set[str] = set()  # collections answering 500
        self.store_healthy = True
        self.dispatch_statuses: list[int] = []  # consumed in order, then 200
        self._next_id = 1

    # -- helpers -------------------------------------------------------------

    def add(self, collection: str, record: dict) -> dict:
        record = dict(record)
        if "id" not in record:
            record["id"] = f"rec{self._next_id:04d}"
            self._next_id += 1
        self.collections.setdefault(collection, {})[record["id"]] = record
        return record

    @property
    def store_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == STORE_HOST]

    @property
    def push_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host not in (STORE_HOST, RELAY_HOST)]

    @property
    def dispatch_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == RELAY_HOST]

    # -- transport -----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == STORE_HOST:
            return self._store(request)
        if request.url.host == RELAY_HOST:
            status = self.dispatch_statuses.pop(0) if self.dispatch_statuses else 200
            return httpx.Response(status, json=[])
        endpoint = str(request.url)
        if endpoint in self.push_errors:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(self.push_status.get(endpoint, 201))

    def _store(self, request: httpx.Request) -> httpx.Response:
        # Split the raw path so percent-encoded slashes stay inside their segment
        path = request.url.raw_path.split(b"?", 1)[0].decode("ascii")
        if path == "/api/health":
            return httpx.Response(200 if self.store_healthy else 503, json={"code": 200})

        parts = [unquote(p) for p in path.strip("/").split("/")]
        if len(parts) < 4 or parts[:2] != ["api", "collections"] or parts[3] != "records":
            return httpx.Response(404, json={"message": "Not found."})

        collection = parts[2]
        if collection in self.failing_collections:
            return httpx.Response(500, json={"message": "Something went wrong."})
        records = self.collections.setdefault(collection, {})

        if len(parts) == 5:
            record = records.get(parts[4])
            if record is None:
                return httpx.Response(404, json={"message": "The requested resource wasn't found."})
            if request.method == "DELETE":
                del records[parts[4]]
                return httpx.Response(204)
            return httpx.Response(200, json=record)

        if request.method == "POST":
            return httpx.Response(200, json=self.add(collection, json.loads(request.content)))

        items = list(records.values())
        flt = request.url.params.get("filter")
        if flt:
            m = re.fullmatch(r'(\w+) = "(.*)"', flt)
            field, value = m.group(1), m.group(2).replace('\\"', '"').replace("\\\\", "\\")
            items = [r for r in items if r.get(field) == value]
        page = int(request.url.params.get("page", 1))
        per_page = int(request.url.params.get("perPage", 30))
        return httpx.Response(
            200,
            json={
                "page": page,
                "perPage": per_page,
                "totalItems": len(items),
                "totalPages": max(1, math.ceil(len(items) / per_page)),
                "items": items[(page - 1) * per_page : page * per_page],
            },
        )


# ---------------------------------------------------------------------------
# Fake async Redis
# ---------------------------------------------------------------------------


class FakeRedis:
    """Minimal in-memory fake that mimics the redis.asyncio.Redis calls used by the ledger."""

    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}
        self.lists: dict[str, list[str]] = {}
        self.ttls: dict[str, int] = {}

    async def hincrby(self, key: str, field: str, amount: int = 1):
        h = self.hashes.setdefault(key, {})
        h[field] = str(int(h.get(field, 0)) + amount)
        return int(h[field])

    async def hset(self, key: str, mapping: dict):
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in mapping.items()})

    async def hgetall(self, key: str):
        return dict(self.hashes.get(key, {}))

    async def expire(self, key: str, ttl: int):
        self.ttls[key] = ttl
        return 1

    async def lpush(self, key: str, value: str):
        self.lists.setdefault(key, []).insert(0, value)

    async def ltrim(self, key: str, start: int, end: int):
        self.lists[key] = self.lists.get(key, [])[start : end + 1]

    async def lrange(self, key: str, start: int, end: int):
        return self.lists.get(key, [])[start : end + 1]

    def pipeline(self, transaction: bool = True):
        return FakePipeline(self)


class FakePipeline:
    """Queues commands and applies them in order on execute(), like a MULTI/EXEC block."""

    def __init__(self, redis: FakeRedis):
        self._redis = redis
        self._ops: list = []
        self.executed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self._ops.clear()

    def __getattr__(self, name: str):
        if name.startswith("_") or not hasattr(self._redis, name):
            raise AttributeError(name)

        def queue(*args, **kwargs):
            self._ops.append((name, args, kwargs))
            return self  # allows chaining

        return queue

    async def execute(self):
        results = [await getattr(self._redis, name)(*args, **kwargs) for name, args, kwargs in self._ops]
        self._ops.clear()
        self.executed = True
        return results


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def http_client(backend):
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))


@pytest.fixture()
def store(http_client):
    return RecordStore(http_client, "http://store.test")


@pytest.fixture()
def client(http_client):
    app.dependency_overrides[get_http_client] = lambda: http_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
