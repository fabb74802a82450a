import django_filters

from taskboard.tasks.api.serializers import normalize_priority
from taskboard.tasks.api.serializers import normalize_status
from taskboard.tasks.models import Task


class TaskFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(method="filter_status")
    priority = django_filters.CharFilter(method="filter_priority")
    # ``priority`` orders by rank (URGENT highest), not alphabetically.
    ordering = django_filters.OrderingFilter(
        fields=(
            ("due_date", "due_date"),
            ("priority_rank", "priority"),
            ("created_at", "created_at"),
        ),
    )

    class Meta:
        model = Task
        fields = ["status", "priority"]

    def filter_status(self, queryset, name, value):
        if not value or value.lower() == "all":
            return queryset
        return queryset.filter(status=normalize_status(value))

    def filter_priority(self, queryset, name, value):
        if not value or value.lower() == "all":
            return queryset
        return queryset.filter(priority=normalize_priority(value))
