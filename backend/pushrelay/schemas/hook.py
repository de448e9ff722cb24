from typing import Any

from pydantic import BaseModel, Field, model_validator

from pushrelay.core import events


class RecordEvent(BaseModel):
    """Record event posted by the store's extension layer.

    Accepts both the PocketBase-style ``{"action", "collection", "record"}``
    shape and Supabase database webhooks (``{"type": "INSERT", "table", ...}``).
    """

    action: str = events.RECORD_CREATE
    collection: str | None = None
    record: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def accept_database_webhook(cls, data: Any) -> Any:
        if isinstance(data, dict) and "type" in data and "action" not in data:
            data = dict(data)
            data["action"] = events.DATABASE_ACTIONS.get(str(data.pop("type")).upper(), "unknown")
            if "table" in data and "collection" not in data:
                data["collection"] = data.pop("table")
        return data

    @property
    def record_id(self) -> str | None:
        value = self.record.get("id")
        return str(value) if value not in (None, "") else None


class HookResponse(BaseModel):
    status: str
    id: str | None = None
