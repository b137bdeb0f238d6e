"""Stored timestamps are timezone-aware UTC on every table."""
from datetime import timezone

import pytest

from app.models import PushConfig, PushSubscription, UserKey, utc_now
from app.services.e2e_crypto import generate_key_pair
from app.services.key_directory import upsert_user_key
from app.services.subscriptions import upsert_subscription
from app.services.vapid import get_or_create_vapid_keys


@pytest.mark.parametrize(
    "model, column",
    [(PushConfig, "created_at"), (PushSubscription, "created_at"), (UserKey, "updated_at")],
)
def test_timestamp_columns_are_timezone_aware(model, column):
    assert model.__table__.c[column].type.timezone is True


def test_default_timestamps_carry_utc():
    assert utc_now().tzinfo is timezone.utc
    assert PushConfig(vapid_public_key="p", vapid_private_key="d").created_at.tzinfo is timezone.utc
    assert PushSubscription(user_id="u1", endpoint="https://a.example/1").created_at.tzinfo is timezone.utc
    assert UserKey(user_id="u1", public_key="k").updated_at.tzinfo is timezone.utc


def test_rows_with_timestamps_are_written(db):
    assert get_or_create_vapid_keys(db).public_key
    upsert_subscription(db, "u1", "https://a.example/push/1", "BPk1", "secret")
    key = generate_key_pair().public_key
    upsert_user_key(db, "u1", key)
    # Second write takes the update path that stamps updated_at explicitly
    row = upsert_user_key(db, "u1", generate_key_pair().public_key)
    assert row.public_key != key
    assert row.updated_at is not None
