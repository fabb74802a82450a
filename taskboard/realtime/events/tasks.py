"""Task event publishers.

Recipients of a task event are the users who can see the task: its creator
and its assignee. Each recipient room receives exactly one copy of an event,
even when the creator is also the assignee.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING
from typing import Any

from django.db.transaction import on_commit

from taskboard.realtime.events import TASK_ASSIGNED
from taskboard.realtime.events import TASK_DELETED
from taskboard.realtime.events import TASK_UPDATED
from taskboard.realtime.socketio import emit_event_to_user

if TYPE_CHECKING:  # import for type checking only
    from taskboard.tasks.models import Task

logger = logging.getLogger(__name__)


def task_recipients(task: Task, *extra: int | None) -> set[int]:
    recipients = {int(task.creator_id)}
    if task.assigned_to_id:
        recipients.add(int(task.assigned_to_id))
    recipients.update(int(uid) for uid in extra if uid)
    return recipients


def build_task_payload(task: Task) -> dict[str, Any]:
    from taskboard.tasks.api.serializers import TaskSerializer  # noqa: PLC0415

    return dict(TaskSerializer(task).data)


def _emit_to_each(recipients: Iterable[int], event: str, payload: dict[str, Any]):
    for user_id in sorted(set(recipients)):
        emit_event_to_user(user_id, event, payload)


def publish_task_updated(task: Task, extra_recipients: Iterable[int | None] = ()):
    """Send the task's current state to everyone who can see it.

    ``extra_recipients`` covers users who just lost visibility (a replaced
    assignee) so their cached copy is not left stale.
    """

    recipients = task_recipients(task, *extra_recipients)
    payload = build_task_payload(task)
    on_commit(lambda: _emit_to_each(recipients, TASK_UPDATED, payload))
    logger.debug("Queued %s for task %s to %s", TASK_UPDATED, task.pk, recipients)


def publish_task_assigned(task: Task) -> None:
    if not task.assigned_to_id:
        return
    assignee_id = int(task.assigned_to_id)
    payload = build_task_payload(task)
    on_commit(lambda: emit_event_to_user(assignee_id, TASK_ASSIGNED, payload))


def publish_task_deleted(task_id: int, recipients: Iterable[int]) -> None:
    recipients = set(recipients)
    payload = {"task_id": int(task_id)}
    on_commit(lambda: _emit_to_each(recipients, TASK_DELETED, payload))
