# carelog/audit/classifier.py
from __future__ import annotations

from dataclasses import dataclass

from carelog.audit import constants as A

SEVERITY_CRITICAL = "critical"
SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"

_RANK = {SEVERITY_MEDIUM: 0, SEVERITY_HIGH: 1, SEVERITY_CRITICAL: 2}

CRITICAL_ACTION_TYPES = frozenset(
    {
        A.REMOVED_PATIENT,
        A.DELETED_PATIENT,
        A.DELETED_USER,
        A.CREATED_USER,
        A.ADDED_NEW_USER,
        A.CREATED_FAMILY,
        A.PATIENT_CREATED,
        A.FAILED_LOGIN,
        A.MULTIPLE_FAILED_LOGINS,
        A.BACKUP_RESTORED,
    }
)

# Everything critical that is not listed here is "high".
SEVERITY_BY_ACTION = {
    A.REMOVED_PATIENT: SEVERITY_CRITICAL,
    A.DELETED_PATIENT: SEVERITY_CRITICAL,
    A.DELETED_USER: SEVERITY_CRITICAL,
    A.MULTIPLE_FAILED_LOGINS: SEVERITY_CRITICAL,
}

# Upper bound applied after the table lookup.
SEVERITY_CEILING = {
    A.TRANSFERRED_PATIENT: SEVERITY_MEDIUM,
}


@dataclass(frozen=True)
class Classification:
    critical: bool
    severity: str | None = None


def severity_for(action_type: str) -> str:
    severity = SEVERITY_BY_ACTION.get(action_type, SEVERITY_HIGH)
    ceiling = SEVERITY_CEILING.get(action_type)
    if ceiling is not None and _RANK[severity] > _RANK[ceiling]:
        return ceiling
    return severity


def classify(action_type: str) -> Classification:
    if action_type not in CRITICAL_ACTION_TYPES:
        return Classification(critical=False)
    return Classification(critical=True, severity=severity_for(action_type))
