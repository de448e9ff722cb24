from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Record store (PocketBase-style REST API) holding subscriptions and notifications
    STORE_URL: str = "http://127.0.0.1:8090"
    STORE_TOKEN: str = ""  # admin/superuser token; sent as a bearer Authorization header
    STORE_TIMEOUT: float = 10.0
    STORE_PAGE_SIZE: int = 200
    SUBSCRIPTIONS_COLLECTION: str = "subscriptions"
    NOTIFICATIONS_COLLECTION: str = "notifications"

    # Web Push (VAPID) — generate with: vapid --gen  (py-vapid) or npx web-push generate-vapid-keys
    VAPID_PRIVATE_KEY: str = ""
    VAPID_PUBLIC_KEY: str = ""
    VAPID_CLAIMS_EMAIL: str = "mailto:admin@localhost"
    PUSH_TTL: int = 2_419_200  # 4 weeks, seconds the push service may hold a message
    PUSH_TIMEOUT: float | None = None  # None = wait for the push service indefinitely
    PRUNE_EXPIRED_SUBSCRIPTIONS: bool = False  # delete subscriptions answered with 404/410

    # Creation hook — where the record store's "notification created" event is forwarded.
    # HOOK_MAX_ATTEMPTS=1 is plain fire-and-forget.
    DISPATCH_URL: str = "http://localhost:8000/api/dispatch"
    HOOK_MAX_ATTEMPTS: int = 1
    HOOK_BACKOFF_SECONDS: float = 1.0
    HOOK_MAX_BACKOFF_SECONDS: float = 60.0
    HOOK_TIMEOUT: float | None = None  # None = wait for dispatch to finish its fan-out

    # Redis — dispatch ledger and hook failure channel.
    # Set to empty string to disable Redis (both features degrade to no-ops).
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = "pushrelay"
    DISPATCH_HISTORY_TTL: int = 604_800  # 7 days
    HOOK_FAILURES_MAX: int = 100

    model_config = {"env_file": ".env"}


settings = Settings()
