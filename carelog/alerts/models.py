from __future__ import annotations

from django.db import models
from django.utils import timezone

from carelog.common.models import TimeStampedModel


class NotificationSeverity(models.TextChoices):
    CRITICAL = "critical", "Critical"
    HIGH = "high", "High"
    MEDIUM = "medium", "Medium"


class Notification(TimeStampedModel):
    """
    Time-bounded alert raised for a critical action record.
    Keep links loose (plain ids) so an alert survives a purge of its record.
    """
    source_record_id = models.BigIntegerField(db_index=True)
    action_type = models.CharField(max_length=64, db_index=True)

    severity = models.CharField(
        max_length=16,
        choices=NotificationSeverity.choices,
        default=NotificationSeverity.HIGH,
        db_index=True,
    )
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")

    actor_id = models.BigIntegerField(default=0)
    actor_display_name = models.CharField(max_length=255)
    actor_role = models.CharField(max_length=16)

    # {"targetType", "targetId", "targetName", "metadata"}
    target_snapshot = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    is_dismissed = models.BooleanField(default=False, db_index=True)
    dismissed_by_id = models.BigIntegerField(null=True, blank=True)
    dismissed_at = models.DateTimeField(null=True, blank=True)

    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "alerts_audit_notification"
        indexes = [
            models.Index(fields=["is_dismissed", "expires_at"]),
            models.Index(fields=["severity", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"[{self.severity}] {self.title}"

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at <= timezone.now()

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()

    def dismiss(self, *, by_user_id: int | None) -> None:
        if not self.is_dismissed:
            self.is_dismissed = True
            self.dismissed_by_id = by_user_id
            self.dismissed_at = timezone.now()
