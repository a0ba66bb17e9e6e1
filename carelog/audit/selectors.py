# carelog/audit/selectors.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from carelog.audit import constants as A
from carelog.audit.models import ActionRecord
from carelog.common.api.pagination import PageWindow

DEFAULT_PAGE_SIZE = 50
TOP_N = 10
LOGIN_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class AuditFilters:
    actor_role: str | None = None
    action_type: str | None = None
    target_type: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    search: str | None = None
    actor_id: int | None = None

    def as_metadata(self) -> dict[str, Any]:
        """
        Non-empty filters keyed the way the HTTP API names them.
        """
        names = {
            "actor_role": "userRole",
            "action_type": "actionType",
            "target_type": "targetType",
            "start": "startDate",
            "end": "endDate",
            "search": "search",
            "actor_id": "userId",
        }
        out: dict[str, Any] = {}
        for attr, key in names.items():
            value = getattr(self, attr)
            if value in (None, ""):
                continue
            out[key] = value.isoformat() if isinstance(value, datetime) else value
        return out


@dataclass(frozen=True)
class RecordPage:
    rows: list[ActionRecord]
    window: PageWindow

    @property
    def total_count(self) -> int:
        return self.window.total_count

    @property
    def total_pages(self) -> int:
        return self.window.total_pages

    @property
    def current_page(self) -> int:
        return self.window.page

    @property
    def has_next(self) -> bool:
        return self.window.has_next

    @property
    def has_previous(self) -> bool:
        return self.window.has_previous


def _in_range(qs: QuerySet[ActionRecord], start: datetime | None, end: datetime | None) -> QuerySet[ActionRecord]:
    if start and end:
        return qs.filter(timestamp__range=(start, end))
    if start:
        return qs.filter(timestamp__gte=start)
    if end:
        return qs.filter(timestamp__lte=end)
    return qs


def filter_records(filters: AuditFilters | None = None) -> QuerySet[ActionRecord]:
    f = filters or AuditFilters()
    qs = ActionRecord.objects.all()

    if f.actor_id is not None:
        qs = qs.filter(actor_id=f.actor_id)
    if f.actor_role:
        qs = qs.filter(actor_role=f.actor_role)
    if f.action_type:
        qs = qs.filter(action_type=f.action_type)
    if f.target_type:
        qs = qs.filter(target_type=f.target_type)

    qs = _in_range(qs, f.start, f.end)

    if f.search:
        qs = qs.filter(
            Q(actor_display_name__icontains=f.search)
            | Q(description__icontains=f.search)
            | Q(target_display_name__icontains=f.search)
        )

    return qs.order_by("-timestamp", "-id")


def list_records(filters: AuditFilters | None = None, *, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> RecordPage:
    qs = filter_records(filters)
    window = PageWindow(page=page, limit=limit, total_count=qs.count())
    rows = list(qs[window.offset : window.offset + limit])
    return RecordPage(rows=rows, window=window)


def get_record(record_id: int) -> ActionRecord:
    return ActionRecord.objects.get(pk=record_id)


def distinct_action_types() -> list[str]:
    return list(
        ActionRecord.objects.exclude(action_type__isnull=True)
        .order_by("action_type")
        .values_list("action_type", flat=True)
        .distinct()
    )


def distinct_target_types() -> list[str]:
    return list(
        ActionRecord.objects.exclude(target_type__isnull=True)
        .exclude(target_type="")
        .order_by("target_type")
        .values_list("target_type", flat=True)
        .distinct()
    )


def audit_stats(*, start: datetime | None = None, end: datetime | None = None) -> dict[str, Any]:
    """
    Totals over the optional range plus fixed recent windows:
    activity in the last 24 hours and the busiest actors of the last 30 days.
    """
    now = timezone.now()
    base = _in_range(ActionRecord.objects.all(), start, end)

    by_role = (
        base.values("actor_role").annotate(count=Count("id")).order_by("-count", "actor_role")
    )
    by_action = (
        base.values("action_type").annotate(count=Count("id")).order_by("-count", "action_type")[:TOP_N]
    )
    active_users = (
        ActionRecord.objects.filter(timestamp__gte=now - timedelta(days=30))
        .values("actor_id", "actor_display_name", "actor_role")
        .annotate(activity_count=Count("id"))
        .order_by("-activity_count", "actor_id")[:TOP_N]
    )

    return {
        "totalLogs": base.count(),
        "logsByRole": [{"role": r["actor_role"], "count": r["count"]} for r in by_role],
        "logsByAction": [{"action": r["action_type"], "count": r["count"]} for r in by_action],
        "recentActivity": ActionRecord.objects.filter(timestamp__gte=now - timedelta(hours=24)).count(),
        "activeUsers": [
            {
                "userId": r["actor_id"],
                "userName": r["actor_display_name"],
                "userRole": r["actor_role"],
                "activityCount": r["activity_count"],
            }
            for r in active_users
        ],
    }


def describe_user_agent(user_agent: str | None) -> tuple[str, str]:
    """
    Coarse (device, browser) labels from a User-Agent string.
    """
    ua = (user_agent or "").lower()

    if "tablet" in ua or "ipad" in ua:
        device = "Tablet"
    elif "mobile" in ua:
        device = "Mobile"
    else:
        device = "Desktop"

    if "edg" in ua:
        browser = "Edge"
    elif "chrome" in ua:
        browser = "Chrome"
    elif "firefox" in ua:
        browser = "Firefox"
    elif "safari" in ua:
        browser = "Safari"
    else:
        browser = "Unknown Browser"

    return device, browser


def login_history(*, actor_id: int, limit: int = LOGIN_HISTORY_LIMIT) -> list[dict[str, Any]]:
    rows = ActionRecord.objects.filter(actor_id=actor_id, action_type=A.USER_LOGIN).order_by("-timestamp", "-id")[
        :limit
    ]
    history = []
    for row in rows:
        device, browser = describe_user_agent(row.user_agent)
        local = timezone.localtime(row.timestamp)
        history.append(
            {
                "id": row.pk,
                "date": local.strftime("%Y-%m-%d"),
                "time": local.strftime("%H:%M:%S"),
                "device": f"{device} - {browser}",
                "location": row.source_ip or "Unknown",
                "timestamp": row.timestamp,
                "fullUserAgent": row.user_agent,
            }
        )
    return history
