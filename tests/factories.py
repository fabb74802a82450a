from __future__ import annotations

from datetime import timedelta
from itertools import count

from django.contrib.auth import get_user_model
from django.utils import timezone

from taskboard.notifications.models import Notification
from taskboard.tasks.models import Task

User = get_user_model()

DEFAULT_PASSWORD = "TestPass123!"  # noqa: S105

_sequence = count(1)


def create_user(
    email: str | None = None,
    *,
    name: str = "",
    password: str = DEFAULT_PASSWORD,
    **extra,
):
    n = next(_sequence)
    return User.objects.create_user(
        email=email or f"user{n}@example.com",
        password=password,
        name=name or f"User {n}",
        **extra,
    )


def create_task(
    creator,
    *,
    assigned_to=None,
    title: str = "Write report",
    due_in: timedelta = timedelta(days=3),
    priority: str = Task.Priority.MEDIUM,
    status: str = Task.Status.TODO,
    **extra,
) -> Task:
    return Task.objects.create(
        title=title,
        creator=creator,
        assigned_to=assigned_to,
        due_date=timezone.now() + due_in,
        priority=priority,
        status=status,
        **extra,
    )


def create_notification(recipient, task: Task, *, is_read: bool = False) -> Notification:
    return Notification.objects.create(
        recipient=recipient,
        task=task,
        message=f'You have been assigned to task: "{task.title}"',
        is_read=is_read,
    )
