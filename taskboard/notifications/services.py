from __future__ import annotations

from typing import TYPE_CHECKING

from taskboard.notifications.models import Notification

if TYPE_CHECKING:  # import for type checking only
    from taskboard.tasks.models import Task


def assignment_message(task: Task) -> str:
    return f'You have been assigned to task: "{task.title}"'


def notify_assignment(task: Task) -> Notification:
    """Record an assignment notification for the task's assignee.

    The post_save signal publishes ``notification:new`` once the surrounding
    transaction commits.
    """

    return Notification.objects.create(
        recipient_id=task.assigned_to_id,
        task=task,
        message=assignment_message(task),
    )


def mark_read(notification_id: int, user) -> int:
    return Notification.objects.filter(
        pk=notification_id, recipient=user, is_read=False
    ).update(is_read=True)


def mark_all_read(user) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).update(
        is_read=True
    )


def unread_count(user) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).count()
