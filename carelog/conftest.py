# carelog/conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from carelog.common.permissions import ALL_ROLES


def ensure_groups():
    for name in ALL_ROLES:
        Group.objects.get_or_create(name=name)


def make_user(username: str, role: str | None = None, **fields):
    ensure_groups()
    User = get_user_model()
    u = User.objects.create_user(username=username, password="pass123", **fields)
    if role:
        u.groups.add(Group.objects.get(name=role))
    return u


def client_for(user) -> APIClient:
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def admin_user(db):
    return make_user("admin1", "ADMIN", first_name="Ada", last_name="Admin")


@pytest.fixture
def management_user(db):
    return make_user("manager1", "MANAGEMENT", first_name="Mona", last_name="Manager")


@pytest.fixture
def doctor_user(db):
    return make_user("doctor1", "DOCTOR", first_name="Dan", last_name="Doctor")


@pytest.fixture
def staff_user(db):
    return make_user("staff1", "STAFF")


@pytest.fixture
def api_client(admin_user):
    return client_for(admin_user)
