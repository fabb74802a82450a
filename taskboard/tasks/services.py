"""Task mutations and their realtime side effects.

Each mutation saves the row and queues the events that keep every
participant's cached task list current. Events are emitted only after the
surrounding transaction commits.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from taskboard.notifications.services import notify_assignment
from taskboard.realtime.events.tasks import publish_task_assigned
from taskboard.realtime.events.tasks import publish_task_deleted
from taskboard.realtime.events.tasks import publish_task_updated
from taskboard.realtime.events.tasks import task_recipients

if TYPE_CHECKING:  # import for type checking only
    from rest_framework.serializers import BaseSerializer

    from taskboard.tasks.models import Task

logger = logging.getLogger(__name__)


def _announce_assignment(task: Task) -> None:
    publish_task_assigned(task)
    notify_assignment(task)


@transaction.atomic
def create_task(serializer: BaseSerializer, actor) -> Task:
    task = serializer.save(creator=actor)
    logger.info("Task %s created by user %s", task.pk, actor.pk)

    publish_task_updated(task)
    # Self-assignment is not news to anyone.
    if task.assigned_to_id and task.assigned_to_id != actor.pk:
        _announce_assignment(task)
    return task


@transaction.atomic
def update_task(serializer: BaseSerializer, actor) -> Task:
    previous_assignee_id = serializer.instance.assigned_to_id
    task = serializer.save()
    logger.info("Task %s updated by user %s", task.pk, actor.pk)

    replaced = (
        previous_assignee_id
        if previous_assignee_id and previous_assignee_id != task.assigned_to_id
        else None
    )
    publish_task_updated(task, extra_recipients=[replaced])

    newly_assigned = (
        task.assigned_to_id
        and task.assigned_to_id != previous_assignee_id
        and task.assigned_to_id != actor.pk
    )
    if newly_assigned:
        _announce_assignment(task)
    return task


@transaction.atomic
def delete_task(task: Task, actor) -> None:
    recipients = task_recipients(task)
    task_id = task.pk
    task.delete()
    logger.info("Task %s deleted by user %s", task_id, actor.pk)
    publish_task_deleted(task_id, recipients)
