"""Tests for /sync/user ingestion."""

import sqlite3

import pytest


def _sync(client, headers, event_id="evt-1", user=None):
    body = {"eventId": event_id, "user": user if user is not None else {"id": "u1", "name": "Anna"}}
    return client.post("/sync/user", json=body, headers=headers)


def test_first_delivery(client, auth_headers):
    res = _sync(client, auth_headers)
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert client.app.state.store.get_user_profile("u1")["name"] == "Anna"


def test_duplicate_delivery_skipped(client, auth_headers, ledger_ids):
    _sync(client, auth_headers)
    res = _sync(client, auth_headers, user={"id": "u1", "name": "Replayed"})
    assert res.status_code == 200
    assert res.json() == {"skipped": True}
    assert client.app.state.store.get_user_profile("u1")["name"] == "Anna"
    assert ledger_ids(client.app.state.store) == ["evt-1"]


def test_new_event_updates_profile(client, auth_headers):
    _sync(client, auth_headers)
    res = _sync(client, auth_headers, event_id="evt-2", user={"id": "u1", "name": "Anna K."})
    assert res.json() == {"success": True}
    assert client.app.state.store.get_user_profile("u1")["name"] == "Anna K."


def test_numeric_ids_accepted(client, auth_headers, ledger_ids):
    res = client.post("/sync/user", json={"eventId": 17, "user": {"id": 5}}, headers=auth_headers)
    assert res.json() == {"success": True}
    assert ledger_ids(client.app.state.store) == ["17"]


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"eventId": "evt-1"},
        {"user": {"id": "u1"}},
        {"eventId": "", "user": {"id": "u1"}},
        {"eventId": "evt-1", "user": {"name": "no id"}},
    ],
)
def test_missing_fields(client, auth_headers, ledger_ids, body):
    res = client.post("/sync/user", json=body, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Missing eventId or user"}
    assert ledger_ids(client.app.state.store) == []


def test_wrong_types_rejected(client, auth_headers):
    res = client.post("/sync/user", json={"eventId": "e", "user": [1, 2]}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid request body"}


def test_store_failure_is_500(client, auth_headers, monkeypatch):
    def _fail(event_id, user):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(client.app.state.store, "ingest_user_event", _fail)
    res = _sync(client, auth_headers)
    assert res.status_code == 500
    assert res.json() == {"error": "Sync failed"}
