"""Fan one notification event out to every push subscription of a user."""
import asyncio
import logging
from dataclasses import dataclass
from http import HTTPStatus

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import settings
from app.models import Profile
from app.services.push_assertion import audience_for, create_vapid_jwt
from app.services.subscriptions import delete_subscription_by_id, list_subscriptions
from app.services.vapid import VapidKeys, get_or_create_vapid_keys

logger = logging.getLogger(__name__)

NOTIFICATION_MESSAGES = {
    "like": "liked your post",
    "comment": "commented on your post",
    "follow": "started following you",
    "message": "sent you a message",
}
FALLBACK_MESSAGE = "sent you a notification"
FALLBACK_ACTOR_NAME = "Someone"

SENT = "sent"
GONE = "gone"
FAILED = "failed"

_SUCCESS_STATUSES = {HTTPStatus.OK, HTTPStatus.CREATED}
_GONE_STATUSES = {HTTPStatus.NOT_FOUND, HTTPStatus.GONE}


@dataclass(frozen=True)
class PushTarget:
    """Detached copy of a subscription row; safe to use after the row is deleted."""

    subscription_id: int
    user_id: str
    endpoint: str


def compose_message(db: Session, kind: str, actor_id: str) -> str:
    actor = db.get(Profile, actor_id)
    actor_name = (actor.display_name or actor.username) if actor else None
    return f"{actor_name or FALLBACK_ACTOR_NAME} {NOTIFICATION_MESSAGES.get(kind, FALLBACK_MESSAGE)}"


async def deliver_to_endpoint(
    client: httpx.AsyncClient,
    target: PushTarget,
    vapid: VapidKeys,
    ttl_seconds: int,
) -> str:
    """
    One content-less push ("wake up and fetch"). Returns SENT, GONE or FAILED;
    never raises, so one bad endpoint cannot sink the batch.
    """
    try:
        audience = audience_for(target.endpoint)
        token = create_vapid_jwt(vapid.private_key, vapid.public_key, audience, vapid.subject)
        # client.post reads the whole body, which releases the connection
        response = await client.post(
            target.endpoint,
            headers={
                "Authorization": f"vapid t={token}, k={vapid.public_key}",
                "Content-Length": "0",
                "TTL": str(ttl_seconds),
            },
            content=b"",
        )
    except httpx.HTTPError as e:
        logger.warning("Push send error: subscription=%s %s: %s", target.subscription_id, type(e).__name__, e)
        return FAILED
    except Exception:
        logger.exception("Push send error: subscription=%s could not be signed or sent", target.subscription_id)
        return FAILED

    if response.status_code in _SUCCESS_STATUSES:
        return SENT
    if response.status_code in _GONE_STATUSES:
        logger.info(
            "Push endpoint gone (status=%s): subscription=%s",
            response.status_code,
            target.subscription_id,
        )
        return GONE
    logger.warning(
        "Push rejected: subscription=%s status=%s body=%s",
        target.subscription_id,
        response.status_code,
        response.text[:200],
    )
    return FAILED


async def send_push_to_user(
    db: Session,
    user_id: str,
    kind: str,
    actor_id: str,
    *,
    client: httpx.AsyncClient,
    ttl_seconds: int | None = None,
) -> int:
    """
    Deliver a `kind` event from `actor_id` to all of `user_id`'s subscriptions.
    Returns how many push services accepted it. Dead endpoints (404/410) are
    pruned; transient failures are logged and left for the next event.
    Only a failure to obtain the VAPID keypair propagates.
    """
    targets = [
        PushTarget(subscription_id=sub.id, user_id=sub.user_id, endpoint=sub.endpoint)
        for sub in list_subscriptions(db, user_id)
    ]
    if not targets:
        return 0

    message = compose_message(db, kind, actor_id)
    vapid = get_or_create_vapid_keys(db)
    ttl = settings.push_ttl_seconds if ttl_seconds is None else ttl_seconds

    outcomes = await asyncio.gather(*(deliver_to_endpoint(client, t, vapid, ttl) for t in targets))

    sent = 0
    for target, outcome in zip(targets, outcomes):
        if outcome == SENT:
            sent += 1
        elif outcome == GONE:
            try:
                delete_subscription_by_id(db, target.subscription_id)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Could not prune push subscription id=%s", target.subscription_id)

    logger.info("Push '%s' to user=%s: sent %d/%d", message, user_id, sent, len(targets))
    return sent
