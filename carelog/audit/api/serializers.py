# carelog/audit/api/serializers.py
from rest_framework import serializers

from carelog.audit.models import ActionRecord, ActorRole, TargetType
from carelog.audit.retention import MAX_DAYS_TO_KEEP, MIN_DAYS_TO_KEEP
from carelog.audit.selectors import AuditFilters


class ActionRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActionRecord
        fields = [
            "id",
            "actor_id",
            "actor_role",
            "actor_display_name",
            "action_type",
            "description",
            "target_type",
            "target_id",
            "target_display_name",
            "metadata",
            "source_ip",
            "user_agent",
            "session_id",
            "error_message",
            "timestamp",
        ]
        read_only_fields = fields


class AuditFilterParamsSerializer(serializers.Serializer):
    """
    Query filters shared by list and export.
    """
    userRole = serializers.ChoiceField(choices=ActorRole.choices, required=False)
    actionType = serializers.CharField(required=False, max_length=64)
    targetType = serializers.ChoiceField(choices=TargetType.choices, required=False)
    startDate = serializers.DateTimeField(required=False)
    endDate = serializers.DateTimeField(required=False)
    search = serializers.CharField(required=False, max_length=255, trim_whitespace=True)

    def validate(self, attrs):
        start, end = attrs.get("startDate"), attrs.get("endDate")
        if start and end and start > end:
            raise serializers.ValidationError({"endDate": "End date must not be before start date."})
        return attrs

    def to_filters(self, *, actor_id: int | None = None) -> AuditFilters:
        d = self.validated_data
        return AuditFilters(
            actor_role=d.get("userRole"),
            action_type=d.get("actionType") or None,
            target_type=d.get("targetType"),
            start=d.get("startDate"),
            end=d.get("endDate"),
            search=d.get("search") or None,
            actor_id=actor_id,
        )


class AuditListParamsSerializer(AuditFilterParamsSerializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=50)


class StatsParamsSerializer(serializers.Serializer):
    startDate = serializers.DateTimeField(required=False)
    endDate = serializers.DateTimeField(required=False)


class CleanupRequestSerializer(serializers.Serializer):
    daysToKeep = serializers.IntegerField(min_value=MIN_DAYS_TO_KEEP, max_value=MAX_DAYS_TO_KEEP)


class CleanupResponseSerializer(serializers.Serializer):
    deletedCount = serializers.IntegerField()
    daysToKeep = serializers.IntegerField()
    cutoffDate = serializers.CharField()


class LogReportRequestSerializer(serializers.Serializer):
    reportType = serializers.CharField(max_length=64)
    reportDetails = serializers.DictField(required=False, default=dict)


class LoginHistoryEntrySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    date = serializers.CharField()
    time = serializers.CharField()
    device = serializers.CharField()
    location = serializers.CharField()
    timestamp = serializers.DateTimeField()
    fullUserAgent = serializers.CharField(allow_null=True)
