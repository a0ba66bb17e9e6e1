# carelog/alerts/messages.py
"""
Title/message templates for critical-event notifications.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from carelog.audit import constants as A


@dataclass(frozen=True)
class NotificationText:
    title: str
    message: str


def _patient_deleted(record, meta) -> NotificationText:
    return NotificationText(
        "Patient Record Deleted",
        f"{record.actor_display_name} deleted patient record: {record.target_display_name}",
    )


def _user_deleted(record, meta) -> NotificationText:
    role = meta.get("deletedUserRole") or "unknown role"
    return NotificationText(
        "User Account Deleted",
        f"{record.actor_display_name} deleted user account: {record.target_display_name} ({role})",
    )


def _user_created(record, meta) -> NotificationText:
    role = meta.get("newUserRole") or "user"
    return NotificationText(
        "New User Created",
        f"{record.actor_display_name} created new {role}: {record.target_display_name}",
    )


def _failed_login(record, meta) -> NotificationText:
    return NotificationText(
        "Failed Login Attempt",
        f"Failed login attempt for {record.target_display_name or 'unknown user'}",
    )


def _repeated_failed_logins(record, meta) -> NotificationText:
    attempts = meta.get("attempts") or "Multiple"
    return NotificationText(
        "Multiple Failed Login Attempts",
        f"{attempts} failed login attempts for {record.target_display_name or 'unknown user'}",
    )


def _backup_restored(record, meta) -> NotificationText:
    return NotificationText(
        "System Restored From Backup",
        f"{record.actor_display_name} restored the system from backup: {record.target_display_name or 'unknown backup'}",
    )


def _patient_transferred(record, meta) -> NotificationText:
    doctor = meta.get("doctorName") or "unknown"
    return NotificationText(
        "Patient Transferred",
        f"{record.actor_display_name} transferred {record.target_display_name} to Dr. {doctor}",
    )


TEMPLATES: dict[str, Callable] = {
    A.REMOVED_PATIENT: _patient_deleted,
    A.DELETED_PATIENT: _patient_deleted,
    A.DELETED_USER: _user_deleted,
    A.CREATED_USER: _user_created,
    A.ADDED_NEW_USER: _user_created,
    A.FAILED_LOGIN: _failed_login,
    A.MULTIPLE_FAILED_LOGINS: _repeated_failed_logins,
    A.BACKUP_RESTORED: _backup_restored,
    A.TRANSFERRED_PATIENT: _patient_transferred,
}


def render(record) -> NotificationText:
    template = TEMPLATES.get(record.action_type)
    if template is None:
        return NotificationText("Audit Event", record.description)
    return template(record, record.metadata or {})
