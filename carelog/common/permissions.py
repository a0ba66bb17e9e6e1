# carelog/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import SAFE_METHODS, BasePermission

# Django auth Group names
ROLE_ADMIN = "ADMIN"
ROLE_MANAGEMENT = "MANAGEMENT"
ROLE_DOCTOR = "DOCTOR"
ROLE_STAFF = "STAFF"
ROLE_PATIENT = "PATIENT"

# Highest privilege first; decides the single role written on records.
ALL_ROLES = [ROLE_ADMIN, ROLE_MANAGEMENT, ROLE_DOCTOR, ROLE_STAFF, ROLE_PATIENT]

# Authenticated users without any role group.
DEFAULT_ROLE = ROLE_STAFF

_ACTION_BY_METHOD = {
    "POST": "create",
    "PUT": "update",
    "PATCH": "partial_update",
    "DELETE": "destroy",
}


def _user_roles(user) -> Set[str]:
    """
    Upper-case role names for an authenticated user.

    Superusers are ADMIN only. Otherwise roles come from auth groups plus an
    optional `role` attribute; a user with none of the known roles gets
    DEFAULT_ROLE.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return set()

    if getattr(user, "is_superuser", False):
        return {ROLE_ADMIN}

    roles: Set[str] = set()
    if hasattr(user, "groups"):
        roles.update(name.upper() for name in user.groups.values_list("name", flat=True))
    if getattr(user, "role", None):
        roles.add(str(user.role).upper())

    if roles.isdisjoint(ALL_ROLES):
        roles.add(DEFAULT_ROLE)
    return roles


def primary_role(user) -> str:
    """Lower-case role recorded on audit rows ("admin", "doctor", ...)."""
    roles = _user_roles(user)
    return next((role.lower() for role in ALL_ROLES if role in roles), DEFAULT_ROLE.lower())


def has_role(user, *roles: str) -> bool:
    return not _user_roles(user).isdisjoint(roles)


def _is_detail(view) -> bool:
    kwargs = getattr(view, "kwargs", None) or {}
    return "pk" in kwargs or "id" in kwargs


class BaseRolePermission(BasePermission):
    """
    Per-action role allow-lists with an ADMIN bypass.

    The action is the viewset action, else the view's `permission_action`
    (plain APIViews), else inferred from the HTTP method. Safe requests for
    an unmapped action are judged as list/retrieve; anything else unmapped
    is denied.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action: dict[str, set[str]] = {}

    def _infer_action(self, request, view) -> str | None:
        explicit = getattr(view, "action", None) or getattr(view, "permission_action", None)
        if explicit:
            return explicit

        method = request.method.upper()
        if method in SAFE_METHODS:
            return "retrieve" if _is_detail(view) else "list"
        return _ACTION_BY_METHOD.get(method)

    def has_permission(self, request, view) -> bool:
        roles = _user_roles(request.user)
        if not roles:
            return False
        if ROLE_ADMIN in roles:
            return True

        allowed = self.allowed_roles_per_action.get(self._infer_action(request, view))
        if allowed is None and request.method in SAFE_METHODS:
            allowed = self.allowed_roles_per_action.get("retrieve" if _is_detail(view) else "list")

        return allowed is not None and not roles.isdisjoint(allowed)

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class AuditPermission(BaseRolePermission):
    """
    Audit trail access. Doctors may list, but the view narrows them to their
    own records.
    """
    message = "Access denied. Insufficient permissions to view audit logs."
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_MANAGEMENT, ROLE_DOCTOR},
        "retrieve": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "stats": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "actions": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "target_types": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "export": {ROLE_ADMIN},
        "cleanup": {ROLE_ADMIN},
    }


class AuditNotificationPermission(BaseRolePermission):
    message = "Access denied. Insufficient permissions to manage audit notifications."
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "critical": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "mark_read": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "dismiss": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "dismiss_all": {ROLE_ADMIN, ROLE_MANAGEMENT},
        "cleanup": {ROLE_ADMIN},
    }
