import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from taskboard.users.models import User
from tests.factories import create_user


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    # DRF throttles keep their history in the default cache.
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db) -> User:
    return create_user("ada@example.com", name="Ada Lovelace")


@pytest.fixture
def other_user(db) -> User:
    return create_user("grace@example.com", name="Grace Hopper")


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def auth_client(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def other_client(other_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=other_user)
    return client


@pytest.fixture
def emitted(monkeypatch):
    """Record every realtime emit as ``(user_id, event, payload)``."""

    calls: list[tuple[int, str, dict]] = []

    def record(user_id, event, payload):
        calls.append((user_id, event, payload))

    monkeypatch.setattr("taskboard.realtime.events.tasks.emit_event_to_user", record)
    monkeypatch.setattr(
        "taskboard.realtime.events.notifications.emit_event_to_user", record
    )
    return calls
