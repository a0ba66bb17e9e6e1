# carelog/audit/models.py
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class ActorRole(models.TextChoices):
    ADMIN = "admin", "Admin"
    DOCTOR = "doctor", "Doctor"
    MANAGEMENT = "management", "Management"
    STAFF = "staff", "Staff"
    PATIENT = "patient", "Patient"


class TargetType(models.TextChoices):
    PATIENT = "patient", "Patient"
    USER = "user", "User"
    MEDICATION = "medication", "Medication"
    VACCINE = "vaccine", "Vaccine"
    APPOINTMENT = "appointment", "Appointment"
    CHECKUP = "checkup", "Checkup"
    REPORT = "report", "Report"
    FAMILY = "family", "Family"
    BACKUP = "backup", "Backup"
    AUDIT = "audit", "Audit"
    INVENTORY = "inventory", "Inventory"


class ActionRecord(models.Model):
    """
    One row per consequential action.

    Rows are append-only. The single exception is the open aggregate row of
    an aggregated action type (see carelog.audit.aggregation), which is
    updated in place while its window is open.
    Actor and target are loose links (plain ids) so records outlive the
    rows they describe.
    """
    id = models.BigAutoField(primary_key=True)

    actor_id = models.BigIntegerField(db_index=True)  # 0 = system
    actor_role = models.CharField(max_length=16, choices=ActorRole.choices, db_index=True)
    actor_display_name = models.CharField(max_length=255)

    action_type = models.CharField(max_length=64, db_index=True)  # e.g. "deleted_user"
    description = models.TextField()

    target_type = models.CharField(max_length=16, choices=TargetType.choices, null=True, blank=True)
    target_id = models.CharField(max_length=64, null=True, blank=True)
    target_display_name = models.CharField(max_length=255, null=True, blank=True)

    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    source_ip = models.CharField(max_length=64, null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    session_id = models.CharField(max_length=255, null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)

    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    # Set only on the open aggregate row: "<actor_id>:<action_type>"
    aggregation_key = models.CharField(max_length=96, null=True, blank=True, unique=True, editable=False)

    class Meta:
        db_table = "audit_action_record"
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["target_type", "target_id"]),
            models.Index(fields=["timestamp", "actor_role"]),
        ]

    def __str__(self) -> str:
        return f"{self.action_type} by {self.actor_display_name} at {self.timestamp:%Y-%m-%d %H:%M:%S}"
