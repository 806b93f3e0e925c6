"""
HTTP tests for /can-contact, /log-attempt and /update-status.

Covers:
- end-to-end: clean slate -> log attempt -> immediate recheck is too soon
- cooldown boundary at T+24h through the API
- opt-out via webhook blocks every later check
- log-attempt on an opted-out lead: behaviour depends on the overwrite policy
- update-status on an unknown lead is a no-op
- validation and storage errors
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from guardian.config import settings
from guardian.services import quota_service


def _lead(channel: str = "instagram", handle: str = "@maria") -> dict:
    return {"channel": channel, "handle": handle}


def test_end_to_end_first_contact_then_cooldown(client, db) -> None:
    first = client.post("/can-contact", json=_lead())
    assert first.status_code == 200
    assert first.json() == {"allowed": True, "status": "new", "reason": "clean_slate"}

    logged = client.post("/log-attempt", json={**_lead(), "new_status": "first_message_sent"})
    assert logged.status_code == 200
    assert logged.json() == {"success": True}

    assert quota_service.get_count(db, "2025-03-10", "instagram") == 1
    leads = client.get("/leads").json()
    assert leads[0]["interaction_count"] == 1
    assert leads[0]["status"] == "first_message_sent"

    again = client.post("/can-contact", json=_lead()).json()
    assert again["allowed"] is False
    assert again["reason"] == "too_soon_for_followup"
    assert again["wait_hours"] == pytest.approx(24)


def test_followup_allowed_after_cooldown(client, clock) -> None:
    client.post("/log-attempt", json={**_lead(), "new_status": "first_message_sent"})

    clock.advance(hours=23, minutes=45)
    early = client.post("/can-contact", json=_lead()).json()
    assert early["reason"] == "too_soon_for_followup"
    assert early["wait_hours"] == pytest.approx(0.25)

    clock.advance(minutes=15)
    assert client.post("/can-contact", json=_lead()).json() == {
        "allowed": True,
        "status": "first_message_sent",
    }

    client.post("/log-attempt", json=_lead())
    assert client.get("/leads").json()[0]["status"] == "followup_sent"


def test_daily_limit_reached_for_any_handle(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "DAILY_CAP_INSTAGRAM", 3)
    for i in range(3):
        client.post("/log-attempt", json=_lead(handle=f"@h{i}"))

    body = client.post("/can-contact", json=_lead(handle="@someone_else")).json()

    assert body == {"allowed": False, "reason": "daily_limit_reached", "current": 3, "max": 3}


def test_opt_out_blocks_every_later_check(client, clock) -> None:
    client.post("/log-attempt", json=_lead())
    resp = client.post("/update-status", json={**_lead(), "status": "stop"})
    assert resp.json() == {"success": True, "updated": True}

    for days in (0, 2, 90):
        clock.advance(days=days)
        assert client.post("/can-contact", json=_lead()).json() == {
            "allowed": False,
            "reason": "lead_opt_out",
        }


def test_log_attempt_after_opt_out_is_preserved_by_default(client, clock) -> None:
    assert settings.STATUS_OVERWRITE_POLICY == "preserve"
    client.post("/log-attempt", json=_lead())
    client.post("/update-status", json={**_lead(), "status": "dnd"})
    clock.advance(days=2)

    client.post("/log-attempt", json=_lead())

    assert client.post("/can-contact", json=_lead()).json()["reason"] == "lead_opt_out"


def test_log_attempt_after_opt_out_overwrites_under_overwrite_policy(client, clock, monkeypatch) -> None:
    # Reference behaviour: the attempt silently replaces the opt-out status.
    monkeypatch.setattr(settings, "STATUS_OVERWRITE_POLICY", "overwrite")
    client.post("/log-attempt", json=_lead())
    client.post("/update-status", json={**_lead(), "status": "stop"})
    clock.advance(days=2)

    client.post("/log-attempt", json=_lead())
    clock.advance(days=2)

    assert client.post("/can-contact", json=_lead()).json() == {"allowed": True, "status": "followup_sent"}


def test_log_attempt_after_opt_out_conflicts_under_reject_policy(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "STATUS_OVERWRITE_POLICY", "reject")
    client.post("/log-attempt", json=_lead())
    client.post("/update-status", json={**_lead(), "status": "stop"})

    resp = client.post("/log-attempt", json=_lead())

    assert resp.status_code == 409
    assert "opted out" in resp.json()["detail"]


def test_responded_is_ongoing_conversation(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "DAILY_CAP_INSTAGRAM", 1)
    client.post("/log-attempt", json=_lead())
    client.post("/update-status", json={**_lead(), "status": "responded"})

    body = client.post("/can-contact", json=_lead()).json()

    assert body == {"allowed": True, "reason": "ongoing_conversation"}


def test_update_status_unknown_lead_is_noop(client) -> None:
    resp = client.post("/update-status", json={**_lead(handle="@nobody"), "status": "stop"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "updated": False}
    assert client.get("/leads").json() == []
    assert client.post("/can-contact", json=_lead(handle="@nobody")).json()["reason"] == "clean_slate"


def test_update_status_accepts_any_string(client) -> None:
    client.post("/log-attempt", json=_lead())
    client.post("/update-status", json={**_lead(), "status": "stop"})
    client.post("/update-status", json={**_lead(), "status": "custom_from_webhook"})

    assert client.get("/leads", params={"status": "custom_from_webhook"}).json()[0]["handle"] == "@maria"


@pytest.mark.parametrize(
    "path,body",
    [
        ("/can-contact", {"channel": "instagram"}),
        ("/can-contact", {"handle": "@maria"}),
        ("/can-contact", {"channel": "telegram", "handle": "@maria"}),
        ("/can-contact", {"channel": "instagram", "handle": ""}),
        ("/log-attempt", {"handle": "@maria"}),
        ("/update-status", {"channel": "instagram", "handle": "@maria"}),
    ],
)
def test_missing_or_invalid_fields_are_client_errors(client, path, body) -> None:
    resp = client.post(path, json=body)

    assert resp.status_code == 422
    assert resp.json()["detail"]


def test_storage_failure_is_server_error(client, monkeypatch) -> None:
    def broken_increment(*args, **kwargs):
        raise OperationalError("INSERT INTO daily_quota", {}, Exception("disk I/O error"))

    monkeypatch.setattr(quota_service, "increment", broken_increment)

    resp = client.post("/log-attempt", json=_lead())

    assert resp.status_code == 500
    assert resp.json()["detail"].startswith("Failed to log attempt")
    monkeypatch.undo()
    assert client.get("/leads").json() == []
