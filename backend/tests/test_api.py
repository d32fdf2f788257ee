"""HTTP API: inbox, preferences, admin settings, cron trigger."""
import pytest
from fastapi.testclient import TestClient

from app.api.routes import cron
from app.core.errors import IndexerError
from app.main import app
from app.services.notifications.cursor import Watermark
from app.services.notifications.preferences import should_send
from conftest import BIDDER_A, SELLER

ADMIN = "0xadmin000000000000000000000000000000000001"


@pytest.fixture
def client():
    return TestClient(app)


def _as(address):
    return {"X-User-Address": address}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_inbox_requires_an_address(client):
    assert client.get("/notifications").status_code == 401


def test_inbox_list_read_and_clear(client, db, store):
    first = store.create_notification(db, BIDDER_A, "OUTBID", "You've Been Outbid", "m1", listing_id="1")
    store.create_notification(db, BIDDER_A, "BID_PLACED", "Bid Placed", "m2", listing_id="1")
    store.create_notification(db, SELLER, "NEW_BID", "New Bid", "m3", listing_id="1")

    body = client.get("/notifications", headers=_as(BIDDER_A)).json()
    assert body["total"] == 2
    assert body["unread_count"] == 2
    assert {n["type"] for n in body["notifications"]} == {"OUTBID", "BID_PLACED"}

    r = client.patch(f"/notifications/{first.id}/read", params={"address": BIDDER_A})
    assert r.status_code == 200 and r.json()["ok"] is True
    assert client.get("/notifications/unread-count", headers=_as(BIDDER_A)).json() == {"unread_count": 1}

    # someone else's notification is invisible
    assert client.patch(f"/notifications/{first.id}/read", headers=_as(SELLER)).status_code == 404

    assert client.post("/notifications/mark-all-read", headers=_as(BIDDER_A)).json()["marked_count"] == 1
    unread = client.get("/notifications", headers=_as(BIDDER_A), params={"unread_only": "true"}).json()
    assert unread["notifications"] == []


def test_preferences_defaults_and_partial_update(client, db):
    body = client.get("/user/notification-preferences", headers=_as(BIDDER_A)).json()
    assert all(body["preferences"].values())
    assert body["push_enabled"] is True and body["email_enabled"] is False

    r = client.patch(
        "/user/notification-preferences", headers=_as(BIDDER_A), json={"outbid": False, "email_enabled": True}
    )
    assert r.status_code == 200
    body = r.json()
    assert body["preferences"]["outbid"] is False
    assert body["preferences"]["auction_won"] is True
    assert body["email_enabled"] is True
    assert should_send(db, BIDDER_A, "OUTBID") is False


def test_preferences_reject_unknown_keys(client):
    r = client.patch("/user/notification-preferences", headers=_as(BIDDER_A), json={"not_a_setting": False})
    assert r.status_code == 422


@pytest.mark.parametrize("value", ["false", "off", 0, 1])
def test_preferences_reject_non_boolean_values(client, db, value):
    r = client.patch("/user/notification-preferences", headers=_as(BIDDER_A), json={"outbid": value})
    assert r.status_code == 422
    assert should_send(db, BIDDER_A, "OUTBID") is True


def test_preferences_reject_string_channel_value(client):
    r = client.patch("/user/notification-preferences", headers=_as(BIDDER_A), json={"push_enabled": "false"})
    assert r.status_code == 422
    body = client.get("/user/notification-preferences", headers=_as(BIDDER_A)).json()
    assert body["push_enabled"] is True


def test_admin_settings_reject_non_boolean_values(client, db):
    r = client.patch("/admin/notifications/settings", headers=_as(ADMIN), json={"outbid": "false"})
    assert r.status_code == 422
    assert should_send(db, BIDDER_A, "OUTBID") is True


def test_admin_settings_require_admin(client):
    assert client.get("/admin/notifications/settings", headers=_as(BIDDER_A)).status_code == 403


def test_admin_can_switch_off_a_kind_globally(client, db):
    r = client.patch("/admin/notifications/settings", headers=_as(ADMIN), json={"outbid": False})
    assert r.status_code == 200
    assert r.json()["outbid"] is False
    assert should_send(db, BIDDER_A, "OUTBID") is False
    assert client.get("/admin/notifications/settings", headers=_as(ADMIN)).json()["auction_won"] is True


def test_cron_requires_secret(client):
    assert client.post("/cron/notifications").status_code == 401


def test_cron_runs_worker(client, monkeypatch):
    monkeypatch.setattr(cron, "run_notification_worker", lambda: Watermark(block=10, timestamp=20))
    r = client.post("/cron/notifications", headers={"Authorization": "Bearer test-cron-secret"})
    assert r.json() == {"ok": True, "block": 10, "timestamp": 20}


def test_cron_maps_indexer_failure_to_503(client, monkeypatch):
    def failing():
        raise IndexerError("subgraph down")

    monkeypatch.setattr(cron, "run_notification_worker", failing)
    r = client.post("/cron/notifications", headers={"Authorization": "Bearer test-cron-secret"})
    assert r.status_code == 503
