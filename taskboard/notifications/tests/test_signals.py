import pytest

from taskboard.notifications.services import assignment_message
from taskboard.notifications.services import notify_assignment
from taskboard.realtime.events import NOTIFICATION_NEW
from tests.factories import create_notification
from tests.factories import create_task

pytestmark = pytest.mark.django_db


def test_new_notification_is_pushed_after_commit(
    user, other_user, emitted, django_capture_on_commit_callbacks
):
    task = create_task(other_user, assigned_to=user)
    with django_capture_on_commit_callbacks() as callbacks:
        notification = notify_assignment(task)
        assert emitted == []

    assert len(callbacks) == 1
    callbacks[0]()
    assert emitted == [(user.id, NOTIFICATION_NEW, emitted[0][2])]
    payload = emitted[0][2]
    assert payload["id"] == notification.id
    assert payload["message"] == assignment_message(task)
    assert payload["task"]["id"] == task.id


def test_updating_a_notification_is_not_pushed(
    user, other_user, emitted, django_capture_on_commit_callbacks
):
    task = create_task(other_user, assigned_to=user)
    notification = create_notification(user, task)
    with django_capture_on_commit_callbacks(execute=True):
        notification.is_read = True
        notification.save()
    assert emitted == []


def test_assignment_message(user):
    task = create_task(user, title="Fix the build")
    assert assignment_message(task) == 'You have been assigned to task: "Fix the build"'
