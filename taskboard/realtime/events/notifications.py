from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from taskboard.realtime.events import NOTIFICATION_NEW
from taskboard.realtime.socketio import emit_event_to_user

if TYPE_CHECKING:  # import for type checking only
    from taskboard.notifications.models import Notification


def build_notification_payload(notification: Notification) -> dict[str, Any]:
    from taskboard.notifications.api.serializers import NotificationSerializer  # noqa: PLC0415

    return dict(NotificationSerializer(notification).data)


def publish_notification_created(notification: Notification) -> None:
    """Publish a newly created Notification to the recipient in realtime."""

    payload = build_notification_payload(notification)
    emit_event_to_user(notification.recipient_id, NOTIFICATION_NEW, payload)
