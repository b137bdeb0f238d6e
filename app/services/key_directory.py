"""
Public-key directory: one E2E public key per user.

Server side it is the user_keys table; clients reach it either through a DB
session (DbKeyDirectory) or over HTTP via /keys (HttpKeyDirectory).
"""
import logging
from typing import Protocol

import httpx
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.models import UserKey, utc_now
from app.services.e2e_crypto import import_public_key

logger = logging.getLogger(__name__)


class KeyDirectory(Protocol):
    def get_public_key(self, user_id: str) -> str | None: ...

    def upsert_public_key(self, user_id: str, public_key: str) -> None: ...


def get_user_key(db: Session, user_id: str) -> UserKey | None:
    return db.get(UserKey, user_id)


def upsert_user_key(db: Session, user_id: str, public_key: str) -> UserKey:
    """Insert or overwrite the user's public key. Raises InvalidPublicKeyError for a bad key."""
    import_public_key(public_key)
    row = db.get(UserKey, user_id)
    if row is None:
        row = UserKey(user_id=user_id, public_key=public_key)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            row = db.get(UserKey, user_id)
            if row is None:
                raise
            row.public_key = public_key
            row.updated_at = utc_now()
            db.add(row)
            db.commit()
    else:
        if row.public_key != public_key:
            logger.info("Replacing public key of record for user=%s", user_id)
        row.public_key = public_key
        row.updated_at = utc_now()
        db.add(row)
        db.commit()
    db.refresh(row)
    return row


class DbKeyDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get_public_key(self, user_id: str) -> str | None:
        row = get_user_key(self.db, user_id)
        return row.public_key if row else None

    def upsert_public_key(self, user_id: str, public_key: str) -> None:
        upsert_user_key(self.db, user_id, public_key)


class HttpKeyDirectory:
    """Directory over the /keys API. Writes are always for the token's own user."""

    def __init__(self, client: httpx.Client, access_token: str, owns_client: bool = False):
        self.client = client
        self.access_token = access_token
        self._owns_client = owns_client

    @classmethod
    def from_url(cls, base_url: str, access_token: str, timeout: float = 10.0) -> "HttpKeyDirectory":
        """Directory with its own client; close() or a with-block releases it."""
        return cls(httpx.Client(base_url=base_url, timeout=timeout), access_token, owns_client=True)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpKeyDirectory":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def get_public_key(self, user_id: str) -> str | None:
        r = self.client.get(f"/keys/{user_id}", headers=self._headers())
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json().get("public_key")

    def upsert_public_key(self, user_id: str, public_key: str) -> None:
        r = self.client.put("/keys", json={"public_key": public_key}, headers=self._headers())
        r.raise_for_status()
        owner = r.json().get("user_id")
        if owner != user_id:
            raise ValueError(f"Directory stored key for {owner!r}, expected {user_id!r}")
