"""
Push endpoint, one URL for every action:
  GET  /sendpush?action=vapid-key              -> {"publicKey"}
  POST /sendpush {"action": "subscribe", ...}   (bearer)
  POST /sendpush {"action": "unsubscribe", ...} (bearer)
  POST /sendpush {"user_id", "type", "actor_id"} (internal trigger)
"""
import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, ValidationError
from sqlmodel import Session

from app.api.deps import get_push_client, security, user_id_from_credentials
from app.core.database import get_db
from app.core.rate_limit import subscription_limit
from app.schemas import (
    OkResponse,
    PushSentResponse,
    PushTriggerRequest,
    SubscribeRequest,
    UnsubscribeRequest,
    VapidKeyResponse,
)
from app.services.push_delivery import send_push_to_user
from app.services.subscriptions import delete_subscription, upsert_subscription
from app.services.vapid import get_or_create_vapid_keys

log = logging.getLogger(__name__)

router = APIRouter(tags=["push"])


def _parse(model: type[BaseModel], body: dict) -> BaseModel:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc") or ())
        raise HTTPException(status_code=422, detail=f"Invalid {field}: {first.get('msg')}") from e


@router.get("/sendpush", response_model=VapidKeyResponse)
def vapid_key(action: str | None = None, db: Session = Depends(get_db)):
    if action != "vapid-key":
        raise HTTPException(status_code=400, detail="Invalid action")
    vapid = get_or_create_vapid_keys(db)
    return VapidKeyResponse(publicKey=vapid.public_key)


@subscription_limit
def _subscribe(request: Request, db: Session, user_id: str, body: dict) -> OkResponse:
    sub = _parse(SubscribeRequest, body).subscription
    upsert_subscription(db, user_id, sub.endpoint, sub.keys.p256dh, sub.keys.auth)
    return OkResponse()


@subscription_limit
def _unsubscribe(request: Request, db: Session, user_id: str, body: dict) -> OkResponse:
    req = _parse(UnsubscribeRequest, body)
    removed = delete_subscription(db, user_id, req.endpoint)
    log.info("Unsubscribe user=%s removed=%d", user_id, removed)
    return OkResponse()


@router.post("/sendpush")
async def sendpush(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_push_client),
):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid action")

    action = body.get("action")
    if action == "subscribe":
        user_id = user_id_from_credentials(credentials)
        return _subscribe(request=request, db=db, user_id=user_id, body=body)

    if action == "unsubscribe":
        user_id = user_id_from_credentials(credentials)
        return _unsubscribe(request=request, db=db, user_id=user_id, body=body)

    # Internal trigger: no end-user token and no per-IP limit
    if body.get("user_id") and body.get("type") and body.get("actor_id"):
        event = _parse(PushTriggerRequest, body)
        sent = await send_push_to_user(db, event.user_id, event.type, event.actor_id, client=client)
        return PushSentResponse(sent=sent)

    raise HTTPException(status_code=400, detail="Invalid action")
