from unittest import mock

import pytest

from taskboard.realtime.events import EVENT_NAMES
from taskboard.realtime.events import TASK_ASSIGNED
from taskboard.realtime.events import TASK_DELETED
from taskboard.realtime.events.tasks import publish_task_assigned
from taskboard.realtime.events.tasks import publish_task_deleted
from taskboard.realtime.events.tasks import task_recipients
from taskboard.tasks.models import Task
from tests.factories import create_task


def test_event_names():
    assert EVENT_NAMES == (
        "task:assigned",
        "task:updated",
        "task:deleted",
        "notification:new",
    )


class TestTaskRecipients:
    def test_creator_only(self):
        assert task_recipients(Task(creator_id=1)) == {1}

    def test_creator_and_assignee(self):
        assert task_recipients(Task(creator_id=1, assigned_to_id=2)) == {1, 2}

    def test_self_assigned_is_one_recipient(self):
        assert task_recipients(Task(creator_id=1, assigned_to_id=1)) == {1}

    def test_extra_recipients(self):
        task = Task(creator_id=1, assigned_to_id=2)
        assert task_recipients(task, 3, None, 2) == {1, 2, 3}


@pytest.mark.django_db
def test_deleted_event_goes_to_each_room_once(django_capture_on_commit_callbacks):
    with (
        mock.patch("taskboard.realtime.events.tasks.emit_event_to_user") as emit,
        django_capture_on_commit_callbacks(execute=True),
    ):
        publish_task_deleted(10, [3, 1, 3])
    assert emit.call_args_list == [
        mock.call(1, TASK_DELETED, {"task_id": 10}),
        mock.call(3, TASK_DELETED, {"task_id": 10}),
    ]


@pytest.mark.django_db
def test_nothing_is_emitted_before_commit(user, django_capture_on_commit_callbacks):
    task = create_task(user, assigned_to=user)
    with mock.patch("taskboard.realtime.events.tasks.emit_event_to_user") as emit:
        with django_capture_on_commit_callbacks() as callbacks:
            publish_task_assigned(task)
        emit.assert_not_called()
        for callback in callbacks:
            callback()
    emit.assert_called_once()
    user_id, event, payload = emit.call_args.args
    assert (user_id, event) == (user.id, TASK_ASSIGNED)
    assert payload["id"] == task.id


@pytest.mark.django_db
def test_unassigned_task_is_not_announced(user, django_capture_on_commit_callbacks):
    task = create_task(user)
    with django_capture_on_commit_callbacks() as callbacks:
        publish_task_assigned(task)
    assert callbacks == []
