# carelog/audit/aggregation.py
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from carelog.audit.models import ActionRecord

logger = logging.getLogger(__name__)


def aggregation_window() -> timedelta:
    return timedelta(minutes=getattr(settings, "AUDIT_VIEW_AGGREGATION_WINDOW_MINUTES", 60))


class ViewAggregator:
    """
    Collapses repeated views by one actor into a single row.

    The open row for an (actor, action type) pair carries a unique
    aggregation_key. While its timestamp is inside the window the row is
    updated in place; once stale, its key is released and a fresh row takes
    it over. Two concurrent first views race on the unique key: the loser
    retries once and lands on the winner's row.
    """

    @classmethod
    def record(cls, entry: dict[str, Any]) -> ActionRecord:
        try:
            with transaction.atomic():
                return cls._upsert(entry)
        except IntegrityError:
            logger.debug("Aggregate row for actor %s was claimed concurrently, retrying", entry["actor_id"])
            with transaction.atomic():
                return cls._upsert(entry)

    @staticmethod
    def _upsert(entry: dict[str, Any]) -> ActionRecord:
        key = f"{entry['actor_id']}:{entry['action_type']}"
        now = timezone.now()
        incoming = entry.get("metadata") or {}

        open_row = ActionRecord.objects.select_for_update().filter(aggregation_key=key).first()

        if open_row is not None and open_row.timestamp >= now - aggregation_window():
            previous = dict(open_row.metadata or {})
            count = int(previous.get("viewCount", 1)) + 1
            open_row.metadata = {
                **previous,
                "viewCount": count,
                "lastFilters": incoming.get("filters"),
                "lastResultsCount": incoming.get("resultsCount"),
                "firstViewedAt": previous.get("firstViewedAt") or open_row.timestamp.isoformat(),
            }
            open_row.timestamp = now
            open_row.description = f"Viewed audit logs ({count} times in the last hour)"
            open_row.save(update_fields=["metadata", "timestamp", "description"])
            return open_row

        if open_row is not None:
            ActionRecord.objects.filter(pk=open_row.pk).update(aggregation_key=None)

        fields = {k: v for k, v in entry.items() if k not in ("metadata", "timestamp")}
        return ActionRecord.objects.create(
            **fields,
            metadata={**incoming, "viewCount": 1, "firstViewedAt": now.isoformat()},
            timestamp=now,
            aggregation_key=key,
        )
