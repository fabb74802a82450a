from django.contrib import admin

from taskboard.tasks import models


@admin.register(models.Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "priority", "status", "due_date", "creator", "assigned_to"]
    search_fields = ["title", "description"]
    list_filter = ["priority", "status", "due_date"]
    raw_id_fields = ["creator", "assigned_to"]
