import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser, Group

from carelog.conftest import make_user
from carelog.iam.actors import Actor, as_actor, resolve_display_name, system_actor

pytestmark = pytest.mark.django_db


def test_actor_from_user_picks_highest_role():
    user = make_user("both", "DOCTOR", first_name="Bo", last_name="Th")
    user.groups.add(Group.objects.get(name="MANAGEMENT"))

    actor = Actor.from_user(user)
    assert actor.role == "management"
    assert actor.full_name == "Bo Th"
    assert actor.username == "both"


def test_superuser_is_admin_and_groupless_user_is_staff():
    plain = make_user("plain")
    root = get_user_model().objects.create_superuser(username="root", password="pass123")

    assert Actor.from_user(root).role == "admin"
    assert Actor.from_user(plain).role == "staff"


def test_as_actor_accepts_actor_user_or_nothing():
    a = Actor(id=3, role="doctor")
    assert as_actor(a) is a
    assert as_actor(None) is None
    assert as_actor(AnonymousUser()) is None


def test_resolve_display_name_order():
    user = make_user("lookup.me", first_name="Look", last_name="Up")

    assert resolve_display_name(Actor(id=1, role="admin"), "Explicit") == "Explicit"
    assert resolve_display_name(Actor(id=1, role="admin", first_name="A", last_name="B", username="ab")) == "A B"
    assert resolve_display_name(Actor(id=1, role="admin", username="ab")) == "ab"
    assert resolve_display_name(Actor(id=user.pk, role="staff")) == "Look Up"
    assert resolve_display_name(Actor(id=55555, role="staff")) == "User 55555"
    assert resolve_display_name(system_actor()) == "System"
    assert resolve_display_name(None) == "System"
