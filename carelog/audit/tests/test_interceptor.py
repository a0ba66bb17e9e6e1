import logging
from unittest import mock

import pytest
from django.core.signals import request_finished
from django.http import HttpResponse

from carelog.alerts.models import Notification
from carelog.alerts.services import NotificationService
from carelog.audit import constants as A
from carelog.audit.interceptor import REDACTED, run_on_close, sanitize
from carelog.audit.models import ActionRecord
from carelog.audit.services import AuditService
from carelog.conftest import client_for

pytestmark = pytest.mark.django_db


def _critical_notification():
    rec = ActionRecord.objects.create(
        actor_id=1,
        actor_role="admin",
        actor_display_name="Ada Admin",
        action_type=A.DELETED_USER,
        description="Deleted user account: Bob",
        target_type="user",
        target_id="42",
        target_display_name="Bob",
    )
    return NotificationService.create_for_record(rec)


def test_sanitize_redacts_credentials_at_any_depth():
    body = {
        "username": "ada",
        "password": "hunter2",
        "confirm_password": "hunter2",
        "profile": {"newPassword": "x", "token": "t", "note": "keep"},
        "items": [{"refresh": "r", "name": "n"}],
    }

    clean = sanitize(body)

    assert clean["username"] == "ada"
    assert clean["password"] == REDACTED
    assert clean["confirm_password"] == REDACTED
    assert clean["profile"] == {"newPassword": REDACTED, "token": REDACTED, "note": "keep"}
    assert clean["items"] == [{"refresh": REDACTED, "name": "n"}]
    # input untouched
    assert body["password"] == "hunter2"


def test_dismiss_is_recorded_from_the_finalized_response(admin_user):
    n = _critical_notification()

    r = client_for(admin_user).put(f"/api/v1/audit-notifications/{n.pk}/dismiss/")

    assert r.status_code == 200
    rec = ActionRecord.objects.get(action_type=A.DISMISSED_AUDIT_NOTIFICATION)
    assert rec.actor_id == admin_user.pk
    assert rec.actor_display_name == "Ada Admin"
    assert rec.target_type == "audit"
    assert rec.target_id == str(n.pk)
    assert rec.metadata["requestMethod"] == "PUT"
    assert rec.metadata["requestUrl"] == f"/api/v1/audit-notifications/{n.pk}/dismiss/"
    assert rec.metadata["responseStatus"] == 200
    assert rec.metadata["result"] == "success"
    assert rec.error_message is None


def test_failed_action_is_recorded_with_error_message(management_user):
    r = client_for(management_user).put("/api/v1/audit-notifications/99999/read/")

    assert r.status_code == 404
    rec = ActionRecord.objects.get(action_type=A.READ_AUDIT_NOTIFICATION)
    assert rec.metadata["result"] == "failure"
    assert rec.metadata["responseStatus"] == 404
    assert rec.error_message == r.json()["error"]["message"]


def test_audit_write_failure_never_changes_the_response(admin_user, caplog):
    n = _critical_notification()

    with mock.patch.object(AuditService, "record", side_effect=RuntimeError("audit down")):
        with caplog.at_level(logging.ERROR, logger="carelog.audit.interceptor"):
            r = client_for(admin_user).put(f"/api/v1/audit-notifications/{n.pk}/dismiss/")

    assert r.status_code == 200
    assert r.json()["is_dismissed"] is True
    assert "Deferred audit write failed" in caplog.text


def test_request_body_is_captured_sanitized(admin_user):
    _critical_notification()

    client_for(admin_user).put(
        "/api/v1/audit-notifications/dismiss-all/",
        {"reason": "shift change", "password": "nope"},
        format="json",
    )

    rec = ActionRecord.objects.get(action_type=A.DISMISSED_ALL_AUDIT_NOTIFICATIONS)
    assert rec.metadata["requestBody"] == {"reason": "shift change", "password": REDACTED}
    assert Notification.objects.filter(is_dismissed=False).count() == 0


def test_views_without_audit_actions_are_not_intercepted(admin_user):
    client_for(admin_user).get("/api/v1/audit/actions/")
    assert not ActionRecord.objects.exists()


def test_run_on_close_waits_for_the_response_to_close():
    calls = []
    response = HttpResponse("ok")

    run_on_close(response, lambda: calls.append("written"))
    assert calls == []

    with mock.patch.object(request_finished, "send"):
        response.close()
    assert calls == ["written"]
