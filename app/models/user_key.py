from datetime import datetime

from sqlmodel import Field, SQLModel

from .columns import timestamp_field


class UserKey(SQLModel, table=True):
    """Public-key directory: one E2E public key per user."""
    __tablename__ = "user_keys"
    user_id: str = Field(primary_key=True)
    public_key: str  # raw P-256 point, standard base64
    updated_at: datetime = timestamp_field()
