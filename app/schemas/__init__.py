from .keys import PublicKeyResponse, PublicKeyUpsert
from .push import (
    OkResponse,
    PushSentResponse,
    PushSubscriptionIn,
    PushSubscriptionKeys,
    PushTriggerRequest,
    SubscribeRequest,
    UnsubscribeRequest,
    VapidKeyResponse,
)

__all__ = [
    "OkResponse",
    "PublicKeyResponse",
    "PublicKeyUpsert",
    "PushSentResponse",
    "PushSubscriptionIn",
    "PushSubscriptionKeys",
    "PushTriggerRequest",
    "SubscribeRequest",
    "UnsubscribeRequest",
    "VapidKeyResponse",
]
