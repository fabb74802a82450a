"""Realtime events produced by task mutations through the API."""

import pytest

from taskboard.realtime.events import NOTIFICATION_NEW
from taskboard.realtime.events import TASK_ASSIGNED
from taskboard.realtime.events import TASK_DELETED
from taskboard.realtime.events import TASK_UPDATED
from tests.factories import create_task
from tests.factories import create_user

pytestmark = pytest.mark.django_db


def events_for(emitted, user_id):
    return [event for uid, event, _ in emitted if uid == user_id]


def test_create_unassigned_notifies_creator_only(
    auth_client, user, emitted, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        r = auth_client.post(
            "/api/v1/tasks/",
            {"title": "Solo", "due_date": "2030-01-01", "priority": "LOW"},
            format="json",
        )
    assert r.status_code == 201
    assert emitted == [(user.id, TASK_UPDATED, emitted[0][2])]
    assert emitted[0][2]["id"] == r.data["id"]
    assert emitted[0][2]["title"] == "Solo"


def test_create_assigned_to_other(
    auth_client, user, other_user, emitted, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        r = auth_client.post(
            "/api/v1/tasks/",
            {
                "title": "Together",
                "due_date": "2030-01-01",
                "priority": "HIGH",
                "assigned_to_id": other_user.id,
            },
            format="json",
        )
    assert r.status_code == 201
    assert events_for(emitted, user.id) == [TASK_UPDATED]
    assert events_for(emitted, other_user.id) == [
        TASK_UPDATED,
        TASK_ASSIGNED,
        NOTIFICATION_NEW,
    ]
    notification_payload = emitted[-1][2]
    assert notification_payload["recipient_id"] == other_user.id
    assert notification_payload["task"]["title"] == "Together"
    assert notification_payload["is_read"] is False


def test_self_assigned_task_emits_once(
    auth_client, user, emitted, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        auth_client.post(
            "/api/v1/tasks/",
            {
                "title": "Mine",
                "due_date": "2030-01-01",
                "priority": "LOW",
                "assigned_to_id": user.id,
            },
            format="json",
        )
    assert [(uid, event) for uid, event, _ in emitted] == [(user.id, TASK_UPDATED)]


def test_update_reaches_creator_and_assignee(
    other_client, user, other_user, emitted, django_capture_on_commit_callbacks
):
    task = create_task(user, assigned_to=other_user)
    with django_capture_on_commit_callbacks(execute=True):
        r = other_client.patch(
            f"/api/v1/tasks/{task.id}/", {"status": "REVIEW"}, format="json"
        )
    assert r.status_code == 200
    assert sorted((uid, event) for uid, event, _ in emitted) == sorted(
        [(user.id, TASK_UPDATED), (other_user.id, TASK_UPDATED)]
    )
    assert all(payload["status"] == "REVIEW" for _, _, payload in emitted)


def test_reassignment_informs_previous_assignee(
    auth_client, user, other_user, emitted, django_capture_on_commit_callbacks
):
    third = create_user("third@example.com")
    task = create_task(user, assigned_to=other_user)
    with django_capture_on_commit_callbacks(execute=True):
        auth_client.patch(
            f"/api/v1/tasks/{task.id}/", {"assigned_to_id": third.id}, format="json"
        )
    assert events_for(emitted, user.id) == [TASK_UPDATED]
    assert events_for(emitted, other_user.id) == [TASK_UPDATED]
    assert events_for(emitted, third.id) == [
        TASK_UPDATED,
        TASK_ASSIGNED,
        NOTIFICATION_NEW,
    ]
    # The previous assignee sees the new assignee and can drop the task.
    previous_copy = next(p for uid, _, p in emitted if uid == other_user.id)
    assert previous_copy["assigned_to_id"] == third.id


def test_unchanged_assignee_is_not_announced(
    other_client, user, other_user, emitted, django_capture_on_commit_callbacks
):
    task = create_task(user, assigned_to=other_user)
    with django_capture_on_commit_callbacks(execute=True):
        other_client.patch(
            f"/api/v1/tasks/{task.id}/",
            {"assigned_to_id": other_user.id, "title": "renamed"},
            format="json",
        )
    assert TASK_ASSIGNED not in [event for _, event, _ in emitted]


def test_delete_targets_participants_only(
    auth_client, user, other_user, emitted, django_capture_on_commit_callbacks
):
    bystander = create_user("bystander@example.com")
    task = create_task(user, assigned_to=other_user)
    task_id = task.id
    with django_capture_on_commit_callbacks(execute=True):
        r = auth_client.delete(f"/api/v1/tasks/{task_id}/")
    assert r.status_code == 200
    assert sorted(emitted, key=lambda item: item[0]) == [
        (user.id, TASK_DELETED, {"task_id": task_id}),
        (other_user.id, TASK_DELETED, {"task_id": task_id}),
    ]
    assert events_for(emitted, bystander.id) == []


def test_rejected_update_emits_nothing(
    auth_client, other_user, emitted, django_capture_on_commit_callbacks
):
    task = create_task(other_user)
    with django_capture_on_commit_callbacks(execute=True):
        r = auth_client.patch(
            f"/api/v1/tasks/{task.id}/", {"title": "hijack"}, format="json"
        )
    assert r.status_code == 403
    assert emitted == []
