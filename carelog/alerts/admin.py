from django.contrib import admin

from carelog.alerts.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "severity",
        "title",
        "actor_display_name",
        "is_read",
        "is_dismissed",
        "expires_at",
    )
    list_filter = ("severity", "is_read", "is_dismissed", "action_type")
    search_fields = ("title", "message", "actor_display_name")
    readonly_fields = ("source_record_id", "action_type", "target_snapshot", "created_at", "updated_at")
    ordering = ("-created_at",)
