from __future__ import annotations

from rest_framework import serializers

from taskboard.notifications.models import Notification
from taskboard.tasks.models import Task
from taskboard.users.api.serializers import UserSummarySerializer


class NotificationTaskSerializer(serializers.ModelSerializer):
    """Task summary embedded in a notification."""

    creator = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)

    class Meta:
        model = Task
        fields = (
            "id",
            "title",
            "description",
            "due_date",
            "priority",
            "creator",
            "assigned_to",
        )
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    """Read serializer for notifications."""

    recipient_id = serializers.IntegerField(read_only=True)
    task_id = serializers.IntegerField(read_only=True)
    task = NotificationTaskSerializer(read_only=True)

    class Meta:
        model = Notification
        fields = (
            "id",
            "recipient_id",
            "task_id",
            "message",
            "is_read",
            "created_at",
            "task",
        )
        read_only_fields = fields
