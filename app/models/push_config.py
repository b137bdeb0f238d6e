"""Process-wide VAPID signing identity; a single row with id "default"."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from .columns import timestamp_field

VAPID_CONFIG_ID = "default"


class PushConfig(SQLModel, table=True):
    __tablename__ = "push_config"
    # Primary key is the uniqueness guard for concurrent first-time creation
    id: str = Field(default=VAPID_CONFIG_ID, primary_key=True)
    vapid_public_key: str  # raw uncompressed P-256 point, base64url
    vapid_private_key: str  # JWK "d" scalar, base64url
    vapid_subject: str | None = None
    created_at: datetime = timestamp_field()
