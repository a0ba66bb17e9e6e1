# carelog/audit/recorders.py
"""
Call-site helpers with stable action types.

Every helper returns the record id, or None when the entry was dropped.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Mapping

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from carelog.audit import constants as A
from carelog.audit.context import RequestContext, Target
from carelog.audit.metadata import (
    ActionMetadata,
    BackupMetadata,
    CheckInMetadata,
    DisposalMetadata,
    FailedLoginMetadata,
    FamilyAssignmentMetadata,
    FamilyMetadata,
    LoginMetadata,
    PatientMetadata,
    PatientTransferMetadata,
    ReportMetadata,
    StockUpdateMetadata,
    UserAccountMetadata,
    UserDeletionMetadata,
    UserUpdateMetadata,
    VitalSignsMetadata,
)
from carelog.audit.models import ActionRecord, TargetType
from carelog.audit.services import AuditService

logger = logging.getLogger(__name__)


def log_patient_created(actor, *, patient_id, patient_name: str, context: RequestContext | None = None, **extra):
    return AuditService.record(
        actor=actor,
        action_type=A.PATIENT_CREATED,
        description=f"Created patient record: {patient_name}",
        target=Target(TargetType.PATIENT, patient_id, patient_name),
        metadata=PatientMetadata(patient_name=patient_name, extra=extra),
        context=context,
    )


def log_patient_removed(
    actor,
    *,
    patient_id,
    patient_name: str,
    reason: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.REMOVED_PATIENT,
        description=f"Removed patient record: {patient_name}",
        target=Target(TargetType.PATIENT, patient_id, patient_name),
        metadata=PatientMetadata(patient_name=patient_name, reason=reason),
        context=context,
    )


def log_patient_transferred(
    actor,
    *,
    patient_id,
    patient_name: str,
    doctor_id=None,
    doctor_name: str | None = None,
    previous_doctor_name: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.TRANSFERRED_PATIENT,
        description=f"Transferred patient {patient_name} to Dr. {doctor_name or 'unknown'}",
        target=Target(TargetType.PATIENT, patient_id, patient_name),
        metadata=PatientTransferMetadata(
            patient_name=patient_name,
            doctor_id=str(doctor_id) if doctor_id is not None else None,
            doctor_name=doctor_name,
            previous_doctor_name=previous_doctor_name,
        ),
        context=context,
    )


def log_patient_check_in(
    actor,
    *,
    patient_id,
    patient_name: str,
    check_in_type: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.PATIENT_CHECK_IN,
        description=f"Checked in patient: {patient_name}",
        target=Target(TargetType.PATIENT, patient_id, patient_name),
        metadata=CheckInMetadata(patient_name=patient_name, check_in_type=check_in_type),
        context=context,
    )


def log_vital_signs_checked(
    actor,
    *,
    patient_id,
    patient_name: str,
    vital_signs: Mapping[str, Any] | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.CHECKED_VITAL_SIGNS,
        description=f"Checked vital signs of patient {patient_name}",
        target=Target(TargetType.PATIENT, patient_id, patient_name),
        metadata=VitalSignsMetadata(patient_name=patient_name, vital_signs=vital_signs),
        context=context,
    )


def log_family_created(
    actor,
    *,
    family_id,
    family_name: str,
    head_of_family: str | None = None,
    member_count: int | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.CREATED_FAMILY,
        description=f"Created family: {family_name}",
        target=Target(TargetType.FAMILY, family_id, family_name),
        metadata=FamilyMetadata(family_name=family_name, head_of_family=head_of_family, member_count=member_count),
        context=context,
    )


def log_family_assigned(
    actor,
    *,
    patient_id,
    patient_name: str,
    family_id,
    family_name: str,
    new_family_created: bool = False,
    context: RequestContext | None = None,
):
    """The target is the patient; the family travels in metadata."""
    if new_family_created:
        description = f'Created family "{family_name}" and assigned patient {patient_name} to it'
    else:
        description = f'Assigned patient {patient_name} to family "{family_name}"'
    return AuditService.record(
        actor=actor,
        action_type=A.FAMILY_ASSIGNED,
        description=description,
        target=Target(TargetType.PATIENT, patient_id, patient_name),
        metadata=FamilyAssignmentMetadata(
            patient_name=patient_name,
            family_id=str(family_id) if family_id is not None else None,
            family_name=family_name,
            new_family_created=new_family_created,
        ),
        context=context,
    )


def log_user_created(
    actor,
    *,
    user_id,
    user_name: str,
    user_role: str,
    email: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.CREATED_USER,
        description=f"Created new {user_role} account: {user_name}",
        target=Target(TargetType.USER, user_id, user_name),
        metadata=UserAccountMetadata(new_user_role=user_role, new_user_email=email),
        context=context,
    )


def log_user_updated(
    actor,
    *,
    user_id,
    user_name: str,
    changes: Mapping[str, Any] | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.UPDATED_USER,
        description=f"Updated user account: {user_name}",
        target=Target(TargetType.USER, user_id, user_name),
        metadata=UserUpdateMetadata(changes=changes),
        context=context,
    )


def log_user_deleted(
    actor,
    *,
    user_id,
    user_name: str,
    user_role: str | None = None,
    email: str | None = None,
    reason: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.DELETED_USER,
        description=f"Deleted user account: {user_name}",
        target=Target(TargetType.USER, user_id, user_name),
        metadata=UserDeletionMetadata(deleted_user_role=user_role, deleted_user_email=email, reason=reason),
        context=context,
    )


def log_stock_added(
    actor,
    *,
    item_type: str,
    item_id,
    item_name: str,
    quantity: int,
    previous_stock: int | None = None,
    new_stock: int | None = None,
    batch_number: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.STOCK_UPDATE,
        description=f"Added {quantity} units of {item_name} to stock",
        target=Target(item_type, item_id, item_name),
        metadata=StockUpdateMetadata(
            update_type="added",
            item_type=item_type,
            quantity=quantity,
            previous_stock=previous_stock,
            new_stock=new_stock,
            batch_number=batch_number,
        ),
        context=context,
    )


def log_item_disposed(
    actor,
    *,
    item_type: str,
    item_id,
    item_name: str,
    quantity: int,
    reason: str | None = None,
    batch_number: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.DISPOSED_ITEM,
        description=f"Disposed {quantity} units of {item_name}" + (f" ({reason})" if reason else ""),
        target=Target(item_type, item_id, item_name),
        metadata=DisposalMetadata(item_type=item_type, quantity=quantity, reason=reason, batch_number=batch_number),
        context=context,
    )


def log_backup_created(
    actor,
    *,
    backup_id,
    backup_name: str,
    backup_type: str | None = None,
    file_size: int | None = None,
    location: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.BACKUP_CREATED,
        description=f"Created backup: {backup_name}",
        target=Target(TargetType.BACKUP, backup_id, backup_name),
        metadata=BackupMetadata(backup_type=backup_type, file_size=file_size, location=location),
        context=context,
    )


def log_backup_restored(
    actor,
    *,
    backup_id,
    backup_name: str,
    backup_type: str | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=A.BACKUP_RESTORED,
        description=f"Restored system from backup: {backup_name}",
        target=Target(TargetType.BACKUP, backup_id, backup_name),
        metadata=BackupMetadata(backup_type=backup_type),
        context=context,
    )


def log_report_generated(
    actor,
    *,
    report_type: str,
    report_name: str | None = None,
    format: str | None = None,
    date_range: Any = None,
    filters: Any = None,
    context: RequestContext | None = None,
):
    name = report_name or f"{report_type} Report"
    return AuditService.record(
        actor=actor,
        action_type=A.GENERATED_REPORT,
        description=f"Generated {name}",
        target=Target(TargetType.REPORT, None, name),
        metadata=ReportMetadata(
            report_type=report_type,
            report_name=name,
            format=format or "PDF",
            date_range=date_range,
            filters=filters,
            is_custom_report=report_type == "custom",
        ),
        context=context,
    )


def log_login(user, *, context: RequestContext | None = None, login_method: str = "password"):
    name = user.get_username()
    return AuditService.record(
        actor=user,
        action_type=A.USER_LOGIN,
        description=f"{name} logged in",
        target=Target(TargetType.USER, user.pk, name),
        metadata=LoginMetadata(login_method=login_method),
        context=context,
    )


def log_logout(user, *, context: RequestContext | None = None):
    name = user.get_username()
    return AuditService.record(
        actor=user,
        action_type=A.USER_LOGOUT,
        description=f"{name} logged out",
        target=Target(TargetType.USER, user.pk, name),
        context=context,
    )


def _failed_login_window() -> timedelta:
    return timedelta(minutes=getattr(settings, "AUDIT_FAILED_LOGIN_WINDOW_MINUTES", 15))


def log_failed_login(username: str | None, *, reason: str | None = None, context: RequestContext | None = None):
    """
    Record a failed sign-in under the system actor.

    Once the threshold of failures for the same username falls inside the
    window, a single multiple_failed_logins record is added as well.
    """
    target_name = str(username) if username not in (None, "") else None
    record_id = AuditService.record(
        actor=None,
        action_type=A.FAILED_LOGIN,
        description=f"Failed login attempt for {target_name or 'unknown user'}",
        target=Target(TargetType.USER, None, target_name),
        metadata=FailedLoginMetadata(attempted_username=target_name, reason=reason),
        context=context,
    )
    if record_id is None or not target_name:
        return record_id

    threshold = getattr(settings, "AUDIT_FAILED_LOGIN_THRESHOLD", 5)
    window = _failed_login_window()
    since = timezone.now() - window
    try:
        attempts = ActionRecord.objects.filter(
            action_type=A.FAILED_LOGIN, target_display_name=target_name, timestamp__gte=since
        ).count()
        already_flagged = ActionRecord.objects.filter(
            action_type=A.MULTIPLE_FAILED_LOGINS, target_display_name=target_name, timestamp__gte=since
        ).exists()
    except DatabaseError:
        logger.exception("Could not count failed logins for %s", target_name)
        return record_id

    if attempts >= threshold and not already_flagged:
        AuditService.record(
            actor=None,
            action_type=A.MULTIPLE_FAILED_LOGINS,
            description=f"{attempts} failed login attempts for {target_name} within {int(window.total_seconds() // 60)} minutes",
            target=Target(TargetType.USER, None, target_name),
            metadata=FailedLoginMetadata(
                attempted_username=target_name,
                attempts=attempts,
                window_minutes=int(window.total_seconds() // 60),
            ),
            context=context,
        )
    return record_id


def log_custom(
    actor,
    *,
    action_type: str,
    description: str,
    target: Target | None = None,
    metadata: ActionMetadata | Mapping[str, Any] | None = None,
    context: RequestContext | None = None,
):
    return AuditService.record(
        actor=actor,
        action_type=action_type,
        description=description,
        target=target,
        metadata=metadata,
        context=context,
    )
