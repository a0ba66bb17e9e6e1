import pytest
from django.test import override_settings
from rest_framework.test import APIClient

from carelog.alerts.models import Notification
from carelog.audit import constants as A
from carelog.audit.models import ActionRecord
from carelog.conftest import make_user

pytestmark = pytest.mark.django_db

LOGIN_URL = "/api/v1/auth/login/"


def test_login_sets_cookies_and_records_login():
    user = make_user("doc", "DOCTOR", first_name="Dana", last_name="Doc")
    c = APIClient()

    r = c.post(
        LOGIN_URL,
        {"username": "doc", "password": "pass123"},
        format="json",
        HTTP_USER_AGENT="Mozilla/5.0 Firefox/121.0",
        HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1",
    )

    assert r.status_code == 200
    assert "cl_access" in r.cookies
    assert "cl_refresh" in r.cookies

    rec = ActionRecord.objects.get(action_type=A.USER_LOGIN)
    assert rec.actor_id == user.pk
    assert rec.actor_role == "doctor"
    assert rec.actor_display_name == "Dana Doc"
    assert rec.source_ip == "203.0.113.7"
    assert rec.user_agent == "Mozilla/5.0 Firefox/121.0"


def test_cookie_session_reaches_me_and_login_history():
    make_user("doc", "DOCTOR")
    c = APIClient()
    c.post(LOGIN_URL, {"username": "doc", "password": "pass123"}, format="json")

    me = c.get("/api/v1/me/")
    assert me.status_code == 200
    assert me.json()["role"] == "doctor"
    assert me.json()["display_name"] == "doc"

    history = c.get("/api/v1/audit/login-history/").json()["loginHistory"]
    assert len(history) == 1
    assert history[0]["location"] == "127.0.0.1"


def test_bad_password_records_failed_login_and_still_fails():
    make_user("doc", "DOCTOR")

    r = APIClient().post(LOGIN_URL, {"username": "doc", "password": "wrong"}, format="json")

    assert r.status_code == 401
    assert r.json()["error"]["code"] == "authentication_failed"
    rec = ActionRecord.objects.get(action_type=A.FAILED_LOGIN)
    assert rec.actor_id == 0
    assert rec.target_display_name == "doc"
    assert rec.metadata["reason"] == "invalid_credentials"
    assert Notification.objects.filter(source_record_id=rec.pk).exists()


@override_settings(AUDIT_FAILED_LOGIN_THRESHOLD=3)
def test_repeated_bad_passwords_flag_the_account():
    make_user("doc", "DOCTOR")
    c = APIClient()
    for _ in range(4):
        c.post(LOGIN_URL, {"username": "doc", "password": "wrong"}, format="json")

    assert ActionRecord.objects.filter(action_type=A.FAILED_LOGIN).count() == 4
    assert ActionRecord.objects.filter(action_type=A.MULTIPLE_FAILED_LOGINS).count() == 1


def test_logout_records_and_clears_cookies():
    user = make_user("doc", "DOCTOR")
    c = APIClient()
    c.force_authenticate(user=user)

    r = c.post("/api/v1/auth/logout/")

    assert r.status_code == 200
    assert r.cookies["cl_access"].value == ""
    rec = ActionRecord.objects.get(action_type=A.USER_LOGOUT)
    assert rec.actor_id == user.pk
    assert rec.description == "doc logged out"


def test_stale_access_cookie_does_not_block_login():
    make_user("doc", "DOCTOR")
    c = APIClient()
    c.cookies["cl_access"] = "not-a-jwt"

    assert c.get("/api/v1/me/").status_code == 401
    r = c.post(LOGIN_URL, {"username": "doc", "password": "pass123"}, format="json")
    assert r.status_code == 200
    assert c.get("/api/v1/me/").status_code == 200


def test_numeric_username_failure_is_still_audited():
    r = APIClient().post(LOGIN_URL, {"username": 12345, "password": "wrong"}, format="json")

    assert r.status_code == 401
    rec = ActionRecord.objects.get(action_type=A.FAILED_LOGIN)
    assert rec.target_display_name == "12345"
    assert Notification.objects.filter(source_record_id=rec.pk).exists()
