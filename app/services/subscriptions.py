"""Push subscription persistence, keyed by (user_id, endpoint)."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models import PushSubscription

logger = logging.getLogger(__name__)


def _find(db: Session, user_id: str, endpoint: str) -> PushSubscription | None:
    stmt = select(PushSubscription).where(
        PushSubscription.user_id == user_id,
        PushSubscription.endpoint == endpoint,
    )
    return db.exec(stmt).first()


def upsert_subscription(db: Session, user_id: str, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
    """Register a browser subscription; the same (user, endpoint) again replaces its keys."""
    sub = _find(db, user_id, endpoint)
    if sub is None:
        sub = PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
        db.add(sub)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a parallel subscribe for the same pair; update theirs
            db.rollback()
            sub = _find(db, user_id, endpoint)
            if sub is None:
                raise
            sub.p256dh, sub.auth = p256dh, auth
            db.add(sub)
            db.commit()
    else:
        sub.p256dh, sub.auth = p256dh, auth
        db.add(sub)
        db.commit()
    db.refresh(sub)
    logger.info("Push subscription saved: id=%s user=%s", sub.id, user_id)
    return sub


def delete_subscription(db: Session, user_id: str, endpoint: str) -> int:
    """Client unsubscribe; only the owner's row for that endpoint is removed."""
    sub = _find(db, user_id, endpoint)
    if sub is None:
        return 0
    db.delete(sub)
    db.commit()
    return 1


def delete_subscription_by_id(db: Session, subscription_id: int) -> None:
    """Prune an endpoint the push service reported as gone."""
    sub = db.get(PushSubscription, subscription_id)
    if sub is None:
        return
    user_id = sub.user_id
    db.delete(sub)
    db.commit()
    logger.info("Pruned push subscription id=%s user=%s", subscription_id, user_id)


def list_subscriptions(db: Session, user_id: str) -> list[PushSubscription]:
    stmt = select(PushSubscription).where(PushSubscription.user_id == user_id).order_by(PushSubscription.id)
    return list(db.exec(stmt).all())
