from django.contrib import admin

from taskboard.notifications import models


@admin.register(models.Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["id", "recipient", "task", "message", "is_read"]
    search_fields = ["message", "task__title"]
    list_filter = ["is_read", "created_at"]
