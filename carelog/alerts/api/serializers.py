from rest_framework import serializers

from carelog.alerts.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "source_record_id",
            "action_type",
            "severity",
            "title",
            "message",
            "actor_id",
            "actor_display_name",
            "actor_role",
            "target_snapshot",
            "is_read",
            "read_at",
            "is_dismissed",
            "dismissed_by_id",
            "dismissed_at",
            "expires_at",
            "created_at",
        ]
        read_only_fields = fields
