from datetime import timedelta

import pytest
from django.utils import timezone

from carelog.alerts.models import Notification
from carelog.alerts.selectors import list_active_notifications, unread_count
from carelog.alerts.services import NotificationService
from carelog.audit import constants as A
from carelog.audit.classifier import CRITICAL_ACTION_TYPES, classify, severity_for
from carelog.audit.context import Target
from carelog.audit.metadata import UserAccountMetadata
from carelog.audit.models import ActionRecord
from carelog.audit.services import AuditService
from carelog.iam.actors import Actor

pytestmark = pytest.mark.django_db

ADMIN = Actor(id=1, role="admin", first_name="Ada", last_name="Admin")

EXPECTED_SEVERITY = {
    "removed_patient": "critical",
    "deleted_patient": "critical",
    "deleted_user": "critical",
    "multiple_failed_logins": "critical",
    "created_user": "high",
    "added_new_user": "high",
    "created_family": "high",
    "patient_created": "high",
    "failed_login": "high",
    "backup_restored": "high",
}


def _record(action_type, *, target=None, metadata=None, actor=ADMIN):
    record_id = AuditService.record(
        actor=actor,
        action_type=action_type,
        description=f"{action_type} happened",
        target=target,
        metadata=metadata,
    )
    return ActionRecord.objects.get(pk=record_id)


def test_critical_set_is_exactly_the_ten_action_types():
    assert CRITICAL_ACTION_TYPES == set(EXPECTED_SEVERITY)


@pytest.mark.parametrize("action_type,severity", sorted(EXPECTED_SEVERITY.items()))
def test_each_critical_type_creates_one_notification_with_expected_severity(action_type, severity):
    rec = _record(action_type, target=Target("user", 9, "Target Nine"))

    notifications = Notification.objects.filter(source_record_id=rec.pk)
    assert notifications.count() == 1

    n = notifications.get()
    assert n.severity == severity
    assert n.action_type == action_type
    assert n.is_read is False
    assert n.is_dismissed is False
    assert n.expires_at - n.created_at == timedelta(hours=24)


@pytest.mark.parametrize("action_type", [A.STOCK_UPDATE, A.USER_LOGIN, A.TRANSFERRED_PATIENT, A.GENERATED_REPORT])
def test_non_critical_types_create_no_notification(action_type):
    _record(action_type)
    assert Notification.objects.count() == 0


def test_transferred_patient_is_capped_at_medium_when_classified():
    assert classify(A.TRANSFERRED_PATIENT).critical is False
    assert severity_for(A.TRANSFERRED_PATIENT) == "medium"


def test_deleted_user_scenario_references_the_deleted_account():
    record_id = AuditService.record(
        actor=ADMIN,
        action_type=A.DELETED_USER,
        description="Deleted user account: Bob Builder",
        target=Target("user", 42, "Bob Builder"),
        metadata={"deletedUserRole": "doctor"},
    )

    n = Notification.objects.get(source_record_id=record_id)
    assert n.severity == "critical"
    assert n.title == "User Account Deleted"
    assert n.message == "Ada Admin deleted user account: Bob Builder (doctor)"
    assert n.target_snapshot["targetType"] == "user"
    assert n.target_snapshot["targetId"] == "42"
    assert n.target_snapshot["targetName"] == "Bob Builder"


def test_message_templates():
    created = _record(
        A.CREATED_USER,
        target=Target("user", 3, "Carol"),
        metadata=UserAccountMetadata(new_user_role="doctor"),
    )
    failed = _record(A.FAILED_LOGIN, target=Target("user", None, "mallory"), actor=None)
    removed = _record(A.REMOVED_PATIENT, target=Target("patient", 7, "Jane Roe"))

    by_record = {n.source_record_id: n for n in Notification.objects.all()}
    assert by_record[created.pk].title == "New User Created"
    assert by_record[created.pk].message == "Ada Admin created new doctor: Carol"
    assert by_record[failed.pk].title == "Failed Login Attempt"
    assert by_record[failed.pk].message == "Failed login attempt for mallory"
    assert by_record[removed.pk].title == "Patient Record Deleted"
    assert by_record[removed.pk].message == "Ada Admin deleted patient record: Jane Roe"


def test_severity_override_for_explicit_notification():
    rec = ActionRecord.objects.create(
        actor_id=1,
        actor_role="admin",
        actor_display_name="Ada Admin",
        action_type=A.PATIENT_CREATED,
        description="Created patient",
    )
    n = NotificationService.create_for_record(rec, severity="medium")
    assert n.severity == "medium"


def test_active_list_orders_by_severity_then_newest_and_hides_expired_and_dismissed():
    high_old = _record(A.PATIENT_CREATED)
    critical = _record(A.DELETED_USER)
    high_new = _record(A.CREATED_FAMILY)
    expired = _record(A.FAILED_LOGIN)
    dismissed = _record(A.CREATED_USER)

    Notification.objects.filter(source_record_id=high_old.pk).update(created_at=timezone.now() - timedelta(hours=2))
    Notification.objects.filter(source_record_id=expired.pk).update(expires_at=timezone.now() - timedelta(minutes=1))
    Notification.objects.filter(source_record_id=dismissed.pk).update(is_dismissed=True)

    ordered = [n.source_record_id for n in list_active_notifications()]
    assert ordered == [critical.pk, high_new.pk, high_old.pk]


def test_lifecycle_read_dismiss_and_sweep():
    first = _record(A.PATIENT_CREATED)
    second = _record(A.DELETED_PATIENT)
    n1 = Notification.objects.get(source_record_id=first.pk)
    n2 = Notification.objects.get(source_record_id=second.pk)

    NotificationService.mark_read(notification_id=n1.pk)
    assert unread_count() == 1

    NotificationService.dismiss(notification_id=n2.pk, actor_id=1)
    n2.refresh_from_db()
    assert n2.is_dismissed is True
    assert n2.dismissed_by_id == 1
    assert n2.dismissed_at is not None

    Notification.objects.filter(pk=n1.pk).update(expires_at=timezone.now() - timedelta(seconds=1))
    assert NotificationService.sweep_expired() == 1
    n1.refresh_from_db()
    assert n1.is_dismissed is True
    assert list_active_notifications() == []


def test_dismiss_all_only_touches_active_notifications():
    for action_type in (A.PATIENT_CREATED, A.CREATED_FAMILY, A.DELETED_USER):
        _record(action_type)
    Notification.objects.filter(action_type=A.CREATED_FAMILY).update(
        expires_at=timezone.now() - timedelta(minutes=5)
    )

    assert NotificationService.dismiss_all(actor_id=1) == 2
    assert Notification.objects.filter(is_dismissed=False).count() == 1


def test_missing_notification_raises_does_not_exist():
    with pytest.raises(Notification.DoesNotExist):
        NotificationService.dismiss(notification_id=999, actor_id=1)
