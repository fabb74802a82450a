from http import HTTPStatus
from unittest import mock

import pytest
from django.db import connection as dj_conn
from django.test import override_settings

QUEUE_URL = "redis://queue:6379/1"


class DummyDbError(Exception):
    """Synthetic DB error for testing."""


@pytest.mark.django_db
@override_settings(SOCKETIO_MESSAGE_QUEUE="")
def test_health_ok_with_in_process_realtime(client):
    with mock.patch("config.health.redis.Redis.ping") as ping:
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.OK
    data = resp.json()
    assert data["status"] == "ok"
    assert data["components"]["database"]["ok"] is True
    assert data["components"]["cache"]["ok"] is True
    assert data["components"]["realtime"] == {
        "ok": True,
        "manager": "in-process",
        "path": "/ws/socket.io/",
    }
    # No queue configured, nothing to reach.
    ping.assert_not_called()


@pytest.mark.django_db
@override_settings(SOCKETIO_MESSAGE_QUEUE=QUEUE_URL)
def test_health_pings_the_message_queue(client):
    with mock.patch("config.health.redis.Redis.ping", return_value=True) as ping:
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["components"]["realtime"]["manager"] == "redis"
    ping.assert_called_once()


@pytest.mark.django_db
@override_settings(SOCKETIO_MESSAGE_QUEUE=QUEUE_URL)
def test_health_degraded_when_message_queue_fails(client):
    with mock.patch(
        "config.health.redis.Redis.ping",
        side_effect=TimeoutError("redis timeout"),
    ):
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["components"]["realtime"]["ok"] is False
    assert data["components"]["realtime"]["error"] == "redis timeout"
    assert data["components"]["database"]["ok"] is True


@pytest.mark.django_db
@override_settings(SOCKETIO_MESSAGE_QUEUE="")
def test_health_degraded_when_cache_loses_writes(client):
    with mock.patch("config.health.cache.get", return_value=None):
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["components"]["cache"]["ok"] is False


@pytest.mark.django_db
@override_settings(SOCKETIO_MESSAGE_QUEUE="")
def test_health_down_when_db_fails(client, monkeypatch):
    msg = "db down"

    def raise_cursor():
        raise DummyDbError(msg)

    monkeypatch.setattr(dj_conn, "cursor", raise_cursor, raising=True)
    resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    data = resp.json()
    assert data["components"]["database"] == {"ok": False, "error": msg}
    assert data["status"] == "down"
