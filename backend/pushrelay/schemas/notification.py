import json
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

# Optional notification fields carried through to the push message
MESSAGE_FIELDS = ("icon", "badge", "image", "tag", "url")


class Notification(BaseModel):
    """A notification record; arbitrary extra fields are kept."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    title: str | None = None
    body: str | None = None

    @field_validator("title", "body", mode="before")
    @classmethod
    def text_from_any(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            return json.dumps(v, ensure_ascii=False)
        return str(v)

    def to_message(self) -> dict[str, Any]:
        """Build the plaintext push message delivered to every subscriber."""
        message: dict[str, Any] = {"title": self.title or "", "body": self.body or ""}
        extra = self.model_extra or {}
        for field in MESSAGE_FIELDS:
            if extra.get(field):
                message[field] = extra[field]
        return message


class DisplayedNotificationResponse(BaseModel):
    title: str
    options: dict[str, Any]
