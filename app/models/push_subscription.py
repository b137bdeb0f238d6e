"""PWA push subscriptions (Web Push API)."""
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .columns import timestamp_field


class PushSubscription(SQLModel, table=True):
    __tablename__ = "push_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),)
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    endpoint: str  # same (user, endpoint) again replaces the keys
    p256dh: str = ""  # client public key (base64url)
    auth: str = ""    # auth secret (base64url)
    created_at: datetime = timestamp_field()
