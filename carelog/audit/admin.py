# carelog/audit/admin.py
from django.contrib import admin

from carelog.audit.models import ActionRecord


@admin.register(ActionRecord)
class ActionRecordAdmin(admin.ModelAdmin):
    list_display = (
        "timestamp",
        "action_type",
        "actor_display_name",
        "actor_role",
        "target_type",
        "target_display_name",
        "source_ip",
    )
    list_filter = ("actor_role", "action_type", "target_type")
    search_fields = ("actor_display_name", "description", "target_display_name")
    readonly_fields = [f.name for f in ActionRecord._meta.fields]
    ordering = ("-timestamp",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
