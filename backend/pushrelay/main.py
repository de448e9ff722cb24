"""
pushrelay — FastAPI entry point.

Record store ──(notification created)──▶ /api/hooks/notifications
            ──▶ /api/dispatch?id=… ──▶ push services ──▶ browsers
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pushrelay.api import dispatch, health, hooks, push
from pushrelay.config import settings
from pushrelay.redis.client import close_redis, init_redis
from pushrelay.store.client import RecordNotFound, StoreError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.http_client = httpx.AsyncClient(timeout=settings.STORE_TIMEOUT)
    if not await init_redis() and settings.HOOK_MAX_ATTEMPTS > 1:
        logger.warning("Hook retries enabled without Redis — dropped triggers will only be logged")
    if not settings.VAPID_PRIVATE_KEY or not settings.VAPID_PUBLIC_KEY:
        logger.warning("VAPID keys not configured — dispatch will deliver nothing")
    yield
    await close_redis()
    await app.state.http_client.aclose()


app = FastAPI(
    title="pushrelay",
    description="Web Push fan-out for notifications stored in a record store",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
# Browsers register their subscriptions directly, so the frontend origin must
# be allowed.  "*" is mapped to allow_origin_regex because Starlette refuses
# allow_origins=["*"] together with allow_credentials=True.
_cors_origins = [o for o in settings.CORS_ORIGINS if o != "*"]
_cors_regex = ".*" if len(_cors_origins) < len(settings.CORS_ORIGINS) else None

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_origin_regex=_cors_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(health.router)
app.include_router(push.router, prefix="/api")
app.include_router(dispatch.router, prefix="/api")
app.include_router(hooks.router, prefix="/api")

# ---------------------------------------------------------------------------
# Custom exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RecordNotFound)
async def record_not_found_handler(request: Request, exc: RecordNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.detail})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.warning("Record store failure on %s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=502, content={"detail": exc.detail})
