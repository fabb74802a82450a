from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from taskboard.notifications import services
from taskboard.notifications.models import Notification

from .serializers import NotificationSerializer

_SUCCESS = OpenApiResponse(description='`{"success": true}`')


@extend_schema_view(
    list=extend_schema(tags=["Notifications"]),
    mark_read=extend_schema(tags=["Notifications"], request=None, responses=_SUCCESS),
    mark_all_read=extend_schema(
        tags=["Notifications"], request=None, responses=_SUCCESS
    ),
    unread_count=extend_schema(tags=["Notifications"]),
)
class NotificationViewSet(mixins.ListModelMixin, GenericViewSet):
    """Notifications for the authenticated user.

    - list: shows request.user's notifications, newest first
    - mark_read / mark_all_read
    - unread_count
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    pagination_class = None
    filter_backends = ()
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):  # schema generation
            return Notification.objects.none()
        return Notification.objects.filter(recipient=self.request.user).select_related(
            "task", "task__creator", "task__assigned_to"
        )

    @action(detail=True, methods=["post"], url_path="mark-read")
    def mark_read(self, request, pk=None):
        notification = self.get_queryset().filter(pk=pk).first()
        if notification is None:
            msg = "Notification not found"
            raise NotFound(msg)
        services.mark_read(notification.pk, request.user)
        return Response({"success": True}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        services.mark_all_read(request.user)
        return Response({"success": True}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        return Response({"count": services.unread_count(request.user)})
