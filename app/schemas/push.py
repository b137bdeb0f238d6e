from pydantic import BaseModel, field_validator


class PushSubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionIn(BaseModel):
    """Browser PushSubscription.toJSON() shape."""
    endpoint: str
    keys: PushSubscriptionKeys
    expirationTime: int | None = None

    @field_validator("endpoint")
    @classmethod
    def endpoint_is_https_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("https://", "http://")):
            raise ValueError("endpoint must be an absolute http(s) URL")
        return v


class SubscribeRequest(BaseModel):
    action: str = "subscribe"
    subscription: PushSubscriptionIn


class UnsubscribeRequest(BaseModel):
    action: str = "unsubscribe"
    endpoint: str


class PushTriggerRequest(BaseModel):
    """Notification event from any source (DB trigger, worker, ...)."""
    user_id: str
    type: str
    actor_id: str

    @field_validator("user_id", "actor_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # integer primary keys from other event sources
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("user_id", "type", "actor_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class VapidKeyResponse(BaseModel):
    publicKey: str


class OkResponse(BaseModel):
    ok: bool = True


class PushSentResponse(OkResponse):
    sent: int
