# carelog/iam/actors.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.db import DatabaseError

from carelog.common.permissions import primary_role

logger = logging.getLogger(__name__)

SYSTEM_ACTOR_ID = 0
SYSTEM_ACTOR_ROLE = "admin"
SYSTEM_ACTOR_NAME = "System"


@dataclass(frozen=True)
class Actor:
    """
    Who performed an action.

    Built from an authenticated user for request-driven calls, or directly
    by callers that only know an id and role (jobs, integrations).
    """
    id: int
    role: str
    first_name: str = ""
    last_name: str = ""
    username: str = ""

    @classmethod
    def from_user(cls, user) -> Actor | None:
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return cls(
            id=user.pk,
            role=primary_role(user),
            first_name=getattr(user, "first_name", "") or "",
            last_name=getattr(user, "last_name", "") or "",
            username=user.get_username() if hasattr(user, "get_username") else "",
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


def system_actor() -> Actor:
    return Actor(id=SYSTEM_ACTOR_ID, role=SYSTEM_ACTOR_ROLE, username=SYSTEM_ACTOR_NAME)


def as_actor(actor_or_user) -> Actor | None:
    """
    Accepts an Actor, a Django user or None.
    """
    if actor_or_user is None or isinstance(actor_or_user, Actor):
        return actor_or_user
    return Actor.from_user(actor_or_user)


def _lookup_display_name(actor_id: int) -> str | None:
    User = get_user_model()
    try:
        row = User.objects.filter(pk=actor_id).values("first_name", "last_name", User.USERNAME_FIELD).first()
    except DatabaseError:
        logger.warning("Display name lookup failed for actor %s", actor_id, exc_info=True)
        return None
    if not row:
        return None
    full = f"{row.get('first_name') or ''} {row.get('last_name') or ''}".strip()
    return full or row.get(User.USERNAME_FIELD) or None


def resolve_display_name(actor: Actor | None, explicit: str | None = None) -> str:
    """
    explicit name -> actor full name -> actor username -> stored user row
    -> "User {id}"; "System" when there is no actor.
    """
    if explicit:
        return explicit
    if actor is None:
        return SYSTEM_ACTOR_NAME
    if actor.full_name:
        return actor.full_name
    if actor.username:
        return actor.username
    if actor.id == SYSTEM_ACTOR_ID:
        return SYSTEM_ACTOR_NAME
    return _lookup_display_name(actor.id) or f"User {actor.id}"
