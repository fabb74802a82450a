from __future__ import annotations

import re

from django.contrib.auth import get_user_model
from rest_framework import ISO_8601
from rest_framework import serializers

from taskboard.tasks.models import Task
from taskboard.users.api.serializers import UserSummarySerializer

User = get_user_model()

_WHITESPACE = re.compile(r"\s+")


def normalize_priority(value: str) -> str:
    """``"high"`` -> ``"HIGH"``."""
    return str(value).strip().upper()


def normalize_status(value: str) -> str:
    """``"In Progress"`` -> ``"IN_PROGRESS"``."""
    return _WHITESPACE.sub("_", str(value).strip()).upper()


class TaskSerializer(serializers.ModelSerializer):
    """Read/write serializer for tasks.

    Priority and status accept the display spelling as well as the stored
    value (``"In Progress"``, ``"high"``); both are normalized before
    validation against the model choices.
    """

    priority = serializers.CharField()
    status = serializers.CharField(required=False)
    due_date = serializers.DateTimeField(
        input_formats=[ISO_8601, "%Y-%m-%d"],
        error_messages={
            "invalid": "Invalid due_date. Please use ISO format (e.g., '2025-12-31').",
        },
    )
    creator = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    creator_id = serializers.IntegerField(read_only=True)
    assigned_to_id = serializers.PrimaryKeyRelatedField(
        source="assigned_to",
        queryset=User.objects.filter(is_active=True),
        allow_null=True,
        required=False,
    )

    class Meta:
        model = Task
        fields = (
            "id",
            "title",
            "description",
            "due_date",
            "priority",
            "status",
            "creator_id",
            "assigned_to_id",
            "creator",
            "assigned_to",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")
        extra_kwargs = {
            "description": {"required": False, "allow_blank": True},
        }

    def validate_priority(self, value: str) -> str:
        normalized = normalize_priority(value)
        if normalized not in Task.Priority.values:
            msg = "Invalid priority value"
            raise serializers.ValidationError(msg)
        return normalized

    def validate_status(self, value: str) -> str:
        normalized = normalize_status(value)
        if normalized not in Task.Status.values:
            msg = "Invalid status value"
            raise serializers.ValidationError(msg)
        return normalized


class UserTaskGroupsSerializer(serializers.Serializer):
    assigned_to_me = TaskSerializer(many=True)
    created_by_me = TaskSerializer(many=True)
    overdue = TaskSerializer(many=True)
