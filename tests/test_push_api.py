"""/sendpush: vapid-key, subscribe, unsubscribe and the internal trigger."""
import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from app.core.config import settings
from app.core.encoding import b64url_decode
from app.core.rate_limit import limiter
from app.main import app
from app.models import PushSubscription
from app.services import push_delivery


def _subscription(endpoint: str = "https://a.example/push/1", p256dh: str = "BPk1", auth: str = "secret") -> dict:
    return {"endpoint": endpoint, "expirationTime": None, "keys": {"p256dh": p256dh, "auth": auth}}


def _rows(db) -> list[PushSubscription]:
    db.expire_all()
    return list(db.exec(select(PushSubscription).order_by(PushSubscription.id)).all())


def test_vapid_key_is_stable(client: TestClient):
    r1 = client.get("/sendpush", params={"action": "vapid-key"})
    r2 = client.get("/sendpush", params={"action": "vapid-key"})
    assert r1.status_code == 200
    key = r1.json()["publicKey"]
    assert len(b64url_decode(key)) == 65
    assert r2.json()["publicKey"] == key


def test_get_without_action_is_rejected(client: TestClient):
    r = client.get("/sendpush")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid action"


def test_subscribe_requires_identity(client: TestClient, db):
    r = client.post("/sendpush", json={"action": "subscribe", "subscription": _subscription()})
    assert r.status_code == 401
    r = client.post(
        "/sendpush",
        json={"action": "subscribe", "subscription": _subscription()},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert r.status_code == 401
    assert _rows(db) == []


def test_subscribe_upserts_by_user_and_endpoint(client: TestClient, db, auth_headers):
    r = client.post("/sendpush", json={"action": "subscribe", "subscription": _subscription()}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    client.post(
        "/sendpush",
        json={"action": "subscribe", "subscription": _subscription(p256dh="BNew", auth="new-auth")},
        headers=auth_headers,
    )
    rows = _rows(db)
    assert len(rows) == 1
    assert (rows[0].user_id, rows[0].p256dh, rows[0].auth) == ("user-1", "BNew", "new-auth")


def test_same_endpoint_for_two_users_is_two_rows(client: TestClient, db, make_auth):
    for user in ("user-1", "user-2"):
        client.post("/sendpush", json={"action": "subscribe", "subscription": _subscription()}, headers=make_auth(user))
    assert sorted(r.user_id for r in _rows(db)) == ["user-1", "user-2"]


def test_subscribe_validates_shape(client: TestClient, auth_headers):
    r = client.post(
        "/sendpush",
        json={"action": "subscribe", "subscription": {"endpoint": "https://a.example/1"}},
        headers=auth_headers,
    )
    assert r.status_code == 422


def test_unsubscribe_only_removes_own_row(client: TestClient, db, make_auth):
    for user in ("user-1", "user-2"):
        client.post("/sendpush", json={"action": "subscribe", "subscription": _subscription()}, headers=make_auth(user))

    r = client.post(
        "/sendpush",
        json={"action": "unsubscribe", "endpoint": "https://a.example/push/1"},
        headers=make_auth("user-1"),
    )
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert [row.user_id for row in _rows(db)] == ["user-2"]


def test_unsubscribe_requires_identity(client: TestClient):
    r = client.post("/sendpush", json={"action": "unsubscribe", "endpoint": "https://a.example/push/1"})
    assert r.status_code == 401


def test_trigger_with_no_subscriptions(client: TestClient, push_service):
    r = client.post("/sendpush", json={"user_id": "nobody", "type": "like", "actor_id": "a1"})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "sent": 0}


def test_trigger_fans_out_and_prunes(client: TestClient, db, push_service, auth_headers):
    for endpoint in ("https://a.example/push/x", "https://b.example/push/y"):
        client.post("/sendpush", json={"action": "subscribe", "subscription": _subscription(endpoint)}, headers=auth_headers)
    push_service.responses = {"a.example": 410, "b.example": 201}

    r = client.post("/sendpush", json={"user_id": "user-1", "type": "like", "actor_id": "someone"})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "sent": 1}
    assert [row.endpoint for row in _rows(db)] == ["https://b.example/push/y"]


def test_unknown_body_is_invalid_action(client: TestClient):
    r = client.post("/sendpush", json={"action": "dance"})
    assert r.status_code == 400
    r = client.post("/sendpush", json={"user_id": "u", "type": "like"})
    assert r.status_code == 400


def test_key_retrieval_failure_fails_the_batch(db, push_service, monkeypatch, auth_headers):
    def broken(_db):
        raise RuntimeError("push_config unavailable")

    monkeypatch.setattr(push_delivery, "get_or_create_vapid_keys", broken)
    with TestClient(app, raise_server_exceptions=False) as c:
        c.post("/sendpush", json={"action": "subscribe", "subscription": _subscription()}, headers=auth_headers)
        r = c.post("/sendpush", json={"user_id": "user-1", "type": "like", "actor_id": "a1"})
    assert r.status_code == 500
    assert r.json()["error"] == "push_config unavailable"
    assert push_service.requests == []


@pytest.fixture
def tight_limit(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_per_minute", 3)
    limiter.reset()
    yield
    limiter.reset()


def test_trigger_burst_is_not_rate_limited(client: TestClient, push_service, tight_limit):
    statuses = [
        client.post("/sendpush", json={"user_id": "u1", "type": "like", "actor_id": "a1"}).status_code
        for _ in range(6)
    ]
    assert statuses == [200] * 6


def test_subscribe_and_unsubscribe_share_a_per_ip_limit(client: TestClient, push_service, auth_headers, tight_limit):
    subscribe = {"action": "subscribe", "subscription": _subscription()}
    unsubscribe = {"action": "unsubscribe", "endpoint": "https://a.example/push/1"}
    statuses = [
        client.post("/sendpush", json=subscribe, headers=auth_headers).status_code,
        client.post("/sendpush", json=unsubscribe, headers=auth_headers).status_code,
        client.post("/sendpush", json=subscribe, headers=auth_headers).status_code,
        client.post("/sendpush", json=unsubscribe, headers=auth_headers).status_code,
    ]
    assert statuses == [200, 200, 200, 429]
    # The trigger still goes through once the subscription budget is spent
    r = client.post("/sendpush", json={"user_id": "user-1", "type": "like", "actor_id": "a1"})
    assert r.status_code == 200


def test_trigger_accepts_numeric_ids(client: TestClient, db, push_service, make_auth):
    client.post("/sendpush", json={"action": "subscribe", "subscription": _subscription()}, headers=make_auth("42"))
    r = client.post("/sendpush", json={"user_id": 42, "type": "like", "actor_id": 7})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "sent": 1}


def test_push_client_lives_for_the_app_lifetime():
    with TestClient(app) as c:
        shared = app.state.push_client
        assert isinstance(shared, httpx.AsyncClient)
        assert not shared.is_closed
        c.get("/health")
        assert app.state.push_client is shared
    assert shared.is_closed
