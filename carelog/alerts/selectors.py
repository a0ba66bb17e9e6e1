from __future__ import annotations

from datetime import datetime

from django.db.models import Case, IntegerField, Q, QuerySet, Value, When
from django.utils import timezone

from carelog.alerts.models import Notification, NotificationSeverity

ACTIVE_LIMIT = 50

_SEVERITY_ORDER = Case(
    When(severity=NotificationSeverity.CRITICAL, then=Value(0)),
    When(severity=NotificationSeverity.HIGH, then=Value(1)),
    When(severity=NotificationSeverity.MEDIUM, then=Value(2)),
    default=Value(3),
    output_field=IntegerField(),
)


def active_notifications_qs(*, now: datetime | None = None) -> QuerySet[Notification]:
    """
    Not dismissed and not expired.
    """
    now = now or timezone.now()
    return Notification.objects.filter(is_dismissed=False).filter(
        Q(expires_at__isnull=True) | Q(expires_at__gt=now)
    )


def by_priority(qs: QuerySet[Notification]) -> QuerySet[Notification]:
    """
    critical -> high -> medium, newest first within a severity.
    """
    return qs.annotate(severity_order=_SEVERITY_ORDER).order_by("severity_order", "-created_at", "-id")


def list_active_notifications(
    *,
    severity: str | None = None,
    include_read: bool = True,
    limit: int = ACTIVE_LIMIT,
) -> list[Notification]:
    qs = active_notifications_qs()
    if severity:
        qs = qs.filter(severity=severity)
    if not include_read:
        qs = qs.filter(is_read=False)
    return list(by_priority(qs)[:limit])


def unread_count() -> int:
    return active_notifications_qs().filter(is_read=False).count()
