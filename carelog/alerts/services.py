from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from carelog.alerts.messages import render
from carelog.alerts.models import Notification
from carelog.alerts.selectors import active_notifications_qs
from carelog.audit.classifier import classify

logger = logging.getLogger(__name__)


def _ttl() -> timedelta:
    return timedelta(hours=getattr(settings, "AUDIT_NOTIFICATION_TTL_HOURS", 24))


class NotificationService:
    @staticmethod
    def create_for_record(record, *, severity: str | None = None) -> Notification | None:
        """
        Raise a notification for a critical record.

        Returns None for non-critical action types. Never raises: a failure
        here must not affect the record that was already written.
        """
        classification = classify(record.action_type)
        if not classification.critical:
            return None

        try:
            text = render(record)
            with transaction.atomic():
                notification = Notification.objects.create(
                    source_record_id=record.pk,
                    action_type=record.action_type,
                    severity=severity or classification.severity,
                    title=text.title,
                    message=text.message,
                    actor_id=record.actor_id,
                    actor_display_name=record.actor_display_name,
                    actor_role=record.actor_role,
                    target_snapshot={
                        "targetType": record.target_type,
                        "targetId": record.target_id,
                        "targetName": record.target_display_name,
                        "metadata": record.metadata or {},
                    },
                )
                notification.expires_at = notification.created_at + _ttl()
                notification.save(update_fields=["expires_at"])
        except Exception:
            logger.exception(
                "Failed to create notification for record %s (%s)", record.pk, record.action_type
            )
            return None

        logger.info(
            "Critical notification %s raised: %s [%s]", notification.pk, notification.title, notification.severity
        )
        return notification

    @staticmethod
    @transaction.atomic
    def mark_read(*, notification_id: int) -> Notification:
        notification = Notification.objects.select_for_update().get(pk=notification_id)
        notification.mark_read()
        notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    @staticmethod
    @transaction.atomic
    def dismiss(*, notification_id: int, actor_id: int | None) -> Notification:
        notification = Notification.objects.select_for_update().get(pk=notification_id)
        notification.dismiss(by_user_id=actor_id)
        notification.save(update_fields=["is_dismissed", "dismissed_by_id", "dismissed_at", "updated_at"])
        return notification

    @staticmethod
    @transaction.atomic
    def dismiss_all(*, actor_id: int | None) -> int:
        now = timezone.now()
        return active_notifications_qs(now=now).update(
            is_dismissed=True,
            dismissed_by_id=actor_id,
            dismissed_at=now,
            updated_at=now,
        )

    @staticmethod
    @transaction.atomic
    def sweep_expired() -> int:
        """
        Mark expired, still-open notifications as dismissed.
        """
        now = timezone.now()
        count = Notification.objects.filter(is_dismissed=False, expires_at__lt=now).update(
            is_dismissed=True,
            dismissed_at=now,
            updated_at=now,
        )
        if count:
            logger.info("Swept %s expired notifications", count)
        return count
