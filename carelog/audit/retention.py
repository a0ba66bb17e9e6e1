# carelog/audit/retention.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from carelog.audit import constants as A
from carelog.audit.context import RequestContext, Target
from carelog.audit.metadata import RetentionMetadata
from carelog.audit.models import ActionRecord, TargetType
from carelog.audit.services import AuditService

logger = logging.getLogger(__name__)

MIN_DAYS_TO_KEEP = 30
MAX_DAYS_TO_KEEP = 365


@dataclass(frozen=True)
class PurgeResult:
    deleted_count: int
    days_to_keep: int
    cutoff: datetime

    def as_dict(self) -> dict:
        return {
            "deletedCount": self.deleted_count,
            "daysToKeep": self.days_to_keep,
            "cutoffDate": self.cutoff.isoformat(),
        }


def validate_days_to_keep(days_to_keep) -> int:
    if isinstance(days_to_keep, bool) or not isinstance(days_to_keep, int):
        raise ValidationError({"daysToKeep": "Days to keep must be an integer."})
    if not MIN_DAYS_TO_KEEP <= days_to_keep <= MAX_DAYS_TO_KEEP:
        raise ValidationError(
            {"daysToKeep": f"Days to keep must be between {MIN_DAYS_TO_KEEP} and {MAX_DAYS_TO_KEEP}."}
        )
    return days_to_keep


class RetentionService:
    @staticmethod
    def purge(days_to_keep: int, *, actor=None, context: RequestContext | None = None) -> PurgeResult:
        """
        Delete every record older than `days_to_keep` days, then record the purge.

        The purge record is stamped now, after the cutoff, so it survives.
        """
        days_to_keep = validate_days_to_keep(days_to_keep)
        cutoff = timezone.now() - timedelta(days=days_to_keep)

        with transaction.atomic():
            deleted_count, _ = ActionRecord.objects.filter(timestamp__lt=cutoff).delete()

        logger.info("Purged %s audit records older than %s", deleted_count, cutoff.isoformat())

        result = PurgeResult(deleted_count=deleted_count, days_to_keep=days_to_keep, cutoff=cutoff)
        AuditService.record(
            actor=actor,
            action_type=A.CLEANED_AUDIT_LOGS,
            description=f"Cleaned up {deleted_count} audit logs older than {days_to_keep} days",
            target=Target(TargetType.AUDIT, None, "Audit Logs"),
            metadata=RetentionMetadata(
                deleted_count=deleted_count,
                days_to_keep=days_to_keep,
                cutoff_date=cutoff.isoformat(),
            ),
            context=context,
        )
        return result
