# carelog/audit/exports.py
from __future__ import annotations

import csv
import io
from typing import Iterable

from django.conf import settings
from django.utils import timezone

from carelog.audit.models import ActionRecord
from carelog.audit.selectors import AuditFilters, filter_records

CSV_HEADER = [
    "Timestamp",
    "User Name",
    "User Role",
    "Action",
    "Description",
    "Target Type",
    "Target Name",
    "IP Address",
]


def export_limit() -> int:
    return getattr(settings, "AUDIT_EXPORT_MAX_ROWS", 10_000)


def export_records(filters: AuditFilters | None = None) -> list[ActionRecord]:
    """
    Unpaginated, newest first, capped at AUDIT_EXPORT_MAX_ROWS.
    """
    return list(filter_records(filters)[: export_limit()])


def _cell(value) -> str:
    # No quoting: delimiters and line breaks inside values are flattened.
    if value is None:
        return ""
    return str(value).replace(",", ";").replace("\r", " ").replace("\n", " ")


def render_csv(rows: Iterable[ActionRecord]) -> str:
    buf = io.StringIO()
    # _cell already removed delimiters and line breaks, so nothing needs escaping
    writer = csv.writer(buf, quoting=csv.QUOTE_NONE, quotechar=None, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow(
            [
                row.timestamp.isoformat(),
                _cell(row.actor_display_name),
                _cell(row.actor_role),
                _cell(row.action_type),
                _cell(row.description),
                _cell(row.target_type),
                _cell(row.target_display_name),
                _cell(row.source_ip),
            ]
        )
    return buf.getvalue()


def export_filename(now=None) -> str:
    now = timezone.localdate(now or timezone.now())
    return f"audit_logs_{now:%Y-%m-%d}.csv"
