from django.conf import settings
from django.db import models
from django.db.models import Case
from django.db.models import IntegerField
from django.db.models import Value
from django.db.models import When
from django.utils.translation import gettext_lazy as _


class Task(models.Model):
    class Priority(models.TextChoices):
        LOW = "LOW", _("Low")
        MEDIUM = "MEDIUM", _("Medium")
        HIGH = "HIGH", _("High")
        URGENT = "URGENT", _("Urgent")

    class Status(models.TextChoices):
        TODO = "TODO", _("Todo")
        IN_PROGRESS = "IN_PROGRESS", _("In Progress")
        REVIEW = "REVIEW", _("Review")
        COMPLETED = "COMPLETED", _("Completed")

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    due_date = models.DateTimeField()
    priority = models.CharField(max_length=10, choices=Priority.choices)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.TODO
    )
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_tasks",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_tasks",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["due_date", "id"]

    def __str__(self):
        return self.title

    def is_participant(self, user_id) -> bool:
        return user_id is not None and user_id in (self.creator_id, self.assigned_to_id)


PRIORITY_RANK = {
    Task.Priority.LOW: 1,
    Task.Priority.MEDIUM: 2,
    Task.Priority.HIGH: 3,
    Task.Priority.URGENT: 4,
}


def priority_rank_expression() -> Case:
    """SQL expression ranking priorities LOW=1 .. URGENT=4 for ordering."""

    return Case(
        *[When(priority=value, then=Value(rank)) for value, rank in PRIORITY_RANK.items()],
        default=Value(0),
        output_field=IntegerField(),
    )
