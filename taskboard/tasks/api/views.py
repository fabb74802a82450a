"""Tasks API endpoints."""

import logging

from django.db.models import Q
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from taskboard.tasks import services
from taskboard.tasks.api.filters import TaskFilter
from taskboard.tasks.api.permissions import IsTaskCreatorForDelete
from taskboard.tasks.api.permissions import IsTaskParticipant
from taskboard.tasks.api.serializers import TaskSerializer
from taskboard.tasks.api.serializers import UserTaskGroupsSerializer
from taskboard.tasks.models import Task
from taskboard.tasks.models import priority_rank_expression

logger = logging.getLogger(__name__)


def _base_queryset():
    return Task.objects.select_related("creator", "assigned_to").annotate(
        priority_rank=priority_rank_expression()
    )


@extend_schema_view(
    list=extend_schema(tags=["Tasks"]),
    retrieve=extend_schema(tags=["Tasks"]),
    create=extend_schema(tags=["Tasks"]),
    partial_update=extend_schema(tags=["Tasks"]),
    destroy=extend_schema(tags=["Tasks"]),
    me=extend_schema(tags=["Tasks"], responses=UserTaskGroupsSerializer),
)
class TaskViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    """Tasks the user created or is assigned to.

    - list / retrieve: only visible tasks (others are 404)
    - create: the caller becomes the creator
    - partial_update: creator or assignee (403 for anyone else)
    - destroy: creator only
    - me: tasks grouped into assigned / created / overdue
    """

    serializer_class = TaskSerializer
    permission_classes = [IsAuthenticated, IsTaskCreatorForDelete, IsTaskParticipant]
    filter_backends = [DjangoFilterBackend]
    filterset_class = TaskFilter
    pagination_class = None
    lookup_value_regex = r"\d+"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        qs = _base_queryset()
        if getattr(self, "swagger_fake_view", False):  # schema generation
            return qs.none()
        # Mutations look up every task so outsiders get 403 instead of 404.
        if self.action in {"partial_update", "update", "destroy"}:
            return qs
        user = self.request.user
        return qs.filter(Q(creator=user) | Q(assigned_to=user))

    def perform_create(self, serializer):
        services.create_task(serializer, self.request.user)

    def perform_update(self, serializer):
        services.update_task(serializer, self.request.user)

    def perform_destroy(self, instance):
        services.delete_task(instance, self.request.user)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        return Response(
            {"message": "Task deleted successfully"}, status=status.HTTP_200_OK
        )

    @action(detail=False, methods=["get"])
    def me(self, request):
        user = request.user
        qs = _base_queryset().order_by("due_date", "id")
        assigned = qs.filter(assigned_to=user)
        created = qs.filter(creator=user)
        overdue = qs.filter(
            Q(creator=user) | Q(assigned_to=user),
            due_date__lt=timezone.now(),
        )
        serializer = UserTaskGroupsSerializer(
            {
                "assigned_to_me": assigned,
                "created_by_me": created,
                "overdue": overdue,
            },
            context={"request": request},
        )
        return Response(serializer.data)
