from pydantic import BaseModel, Field


class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscription(BaseModel):
    """Browser PushSubscription.toJSON() shape."""

    endpoint: str = Field(..., min_length=1)
    expirationTime: float | None = None
    keys: PushKeys


class SubscribeResponse(BaseModel):
    status: str = "subscribed"
    id: str
    created: bool


class UnsubscribeRequest(BaseModel):
    endpoint: str
