"""VAPID signing identity: one P-256 ECDSA keypair per deployment, created on first use and never rotated."""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.config import settings
from app.core.ec_keys import generate_private_key, private_scalar, public_key_to_raw
from app.core.encoding import b64url_encode
from app.models import VAPID_CONFIG_ID, PushConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VapidKeys:
    public_key: str  # raw 65-byte point, base64url
    private_key: str  # JWK "d", base64url
    subject: str


def generate_vapid_keys() -> tuple[str, str]:
    """New keypair as (public raw point, private scalar d), both base64url."""
    private_key = generate_private_key()
    public_raw = public_key_to_raw(private_key.public_key())
    return b64url_encode(public_raw), b64url_encode(private_scalar(private_key))


def _load_config(db: Session) -> PushConfig | None:
    return db.get(PushConfig, VAPID_CONFIG_ID)


def _to_keys(row: PushConfig) -> VapidKeys:
    return VapidKeys(
        public_key=row.vapid_public_key,
        private_key=row.vapid_private_key,
        subject=row.vapid_subject or settings.vapid_subject,
    )


def get_or_create_vapid_keys(db: Session) -> VapidKeys:
    """
    Return the stored VAPID keypair, generating and persisting it on first use.
    Concurrent first callers race on the push_config primary key; the loser
    rolls back and returns the winner's row, so only one keypair ever exists.
    """
    row = _load_config(db)
    if row is not None:
        return _to_keys(row)

    public_key, private_key = generate_vapid_keys()
    db.add(
        PushConfig(
            id=VAPID_CONFIG_ID,
            vapid_public_key=public_key,
            vapid_private_key=private_key,
            vapid_subject=settings.vapid_subject,
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        row = _load_config(db)
        if row is None:
            raise
        logger.info("VAPID keypair was created concurrently, using the stored one")
        return _to_keys(row)

    logger.info("Generated new VAPID keypair")
    return VapidKeys(public_key=public_key, private_key=private_key, subject=settings.vapid_subject)
