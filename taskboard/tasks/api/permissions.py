"""Object permissions for tasks."""

from rest_framework.permissions import BasePermission


class IsTaskParticipant(BasePermission):
    """Creator or assignee may read and update a task."""

    message = "You don't have permission to update this task"

    def has_object_permission(self, request, view, obj):
        return obj.is_participant(getattr(request.user, "id", None))


class IsTaskCreatorForDelete(BasePermission):
    """Only the creator may delete a task."""

    message = "Only the task creator can delete this task"

    def has_object_permission(self, request, view, obj):
        if request.method != "DELETE":
            return True
        return obj.creator_id == getattr(request.user, "id", None)
