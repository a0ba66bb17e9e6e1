from datetime import timedelta

import pytest
from django.utils import timezone

from carelog.alerts.models import Notification
from carelog.audit import constants as A
from carelog.audit.context import Target
from carelog.audit.services import AuditService
from carelog.conftest import client_for
from carelog.iam.actors import Actor

pytestmark = pytest.mark.django_db

URL = "/api/v1/audit-notifications/"
ADMIN = Actor(id=1, role="admin", first_name="Ada", last_name="Admin")


def _raise(action_type, name="Target"):
    record_id = AuditService.record(
        actor=ADMIN,
        action_type=action_type,
        description=f"{action_type} happened",
        target=Target("user", 9, name),
    )
    return Notification.objects.get(source_record_id=record_id)


def test_list_defaults_to_unread_ordered_by_severity(management_user):
    high = _raise(A.CREATED_USER)
    critical = _raise(A.DELETED_USER)
    read = _raise(A.PATIENT_CREATED)
    Notification.objects.filter(pk=read.pk).update(is_read=True)

    r = client_for(management_user).get(URL)

    assert r.status_code == 200
    body = r.json()
    assert [n["id"] for n in body["notifications"]] == [critical.pk, high.pk]
    assert body["count"] == 2
    assert body["unreadCount"] == 2


def test_list_include_read_and_filters(management_user):
    _raise(A.CREATED_USER)
    critical = _raise(A.DELETED_USER)
    read = _raise(A.PATIENT_CREATED)
    Notification.objects.filter(pk=read.pk).update(is_read=True)
    c = client_for(management_user)

    assert c.get(URL, {"includeRead": "true"}).json()["count"] == 3
    assert [n["id"] for n in c.get(URL, {"severity": "critical"}).json()["notifications"]] == [critical.pk]
    assert c.get(URL, {"actionType": A.PATIENT_CREATED, "includeRead": "true"}).json()["count"] == 1
    assert c.get(URL, {"severity": "urgent"}).status_code == 400


def test_list_hides_expired_and_dismissed(admin_user):
    expired = _raise(A.CREATED_USER)
    dismissed = _raise(A.CREATED_FAMILY)
    live = _raise(A.BACKUP_RESTORED)
    Notification.objects.filter(pk=expired.pk).update(expires_at=timezone.now() - timedelta(minutes=1))
    Notification.objects.filter(pk=dismissed.pk).update(is_dismissed=True)

    body = client_for(admin_user).get(URL).json()
    assert [n["id"] for n in body["notifications"]] == [live.pk]


def test_critical_endpoint_only_returns_critical(management_user):
    _raise(A.CREATED_USER)
    critical = _raise(A.REMOVED_PATIENT, name="Jane Roe")

    body = client_for(management_user).get(f"{URL}critical/").json()

    assert body["count"] == 1
    n = body["notifications"][0]
    assert n["id"] == critical.pk
    assert n["title"] == "Patient Record Deleted"
    assert n["message"] == "Ada Admin deleted patient record: Jane Roe"
    assert n["target_snapshot"]["targetName"] == "Jane Roe"


def test_mark_read_and_dismiss(management_user):
    n = _raise(A.DELETED_USER)
    c = client_for(management_user)

    r = c.put(f"{URL}{n.pk}/read/")
    assert r.status_code == 200
    assert r.json()["is_read"] is True
    assert r.json()["read_at"]

    r = c.put(f"{URL}{n.pk}/dismiss/")
    assert r.status_code == 200
    n.refresh_from_db()
    assert n.is_dismissed is True
    assert n.dismissed_by_id == management_user.pk


def test_dismiss_all_reports_count(admin_user):
    for action_type in (A.CREATED_USER, A.DELETED_USER):
        _raise(action_type)

    r = client_for(admin_user).put(f"{URL}dismiss-all/")

    assert r.status_code == 200
    assert r.json()["count"] == 2
    assert not Notification.objects.filter(is_dismissed=False).exists()


def test_cleanup_sweeps_expired_and_is_admin_only(admin_user, management_user):
    n = _raise(A.CREATED_USER)
    Notification.objects.filter(pk=n.pk).update(expires_at=timezone.now() - timedelta(hours=1))

    assert client_for(management_user).post(f"{URL}cleanup/").status_code == 403

    r = client_for(admin_user).post(f"{URL}cleanup/")
    assert r.status_code == 200
    assert r.json()["count"] == 1


@pytest.mark.parametrize("method,path", [("get", ""), ("get", "critical/"), ("put", "dismiss-all/")])
def test_doctor_and_staff_are_denied(doctor_user, staff_user, method, path):
    for user in (doctor_user, staff_user):
        r = getattr(client_for(user), method)(f"{URL}{path}")
        assert r.status_code == 403
        assert r.json()["error"]["code"] == "permission_denied"


def test_unknown_notification_is_404(admin_user):
    r = client_for(admin_user).put(f"{URL}123456/dismiss/")
    assert r.status_code == 404
