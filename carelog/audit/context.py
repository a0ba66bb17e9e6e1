# carelog/audit/context.py
from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Target:
    type: str | None = None
    id: str | int | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class RequestContext:
    """
    Request-derived facts attached to a record.
    """
    source_ip: str | None = None
    user_agent: str | None = None
    session_id: str | None = None
    actor_display_name: str | None = None
    error_message: str | None = None

    @classmethod
    def from_request(cls, request) -> RequestContext:
        if request is None:
            return cls()
        meta = getattr(request, "META", None) or {}

        forwarded = meta.get("HTTP_X_FORWARDED_FOR")
        ip = forwarded.split(",")[0].strip() if forwarded else meta.get("REMOTE_ADDR")

        session = getattr(request, "session", None)
        session_id = getattr(session, "session_key", None) if session is not None else None

        return cls(
            source_ip=ip or None,
            user_agent=meta.get("HTTP_USER_AGENT") or None,
            session_id=session_id or None,
        )

    def with_error(self, message: str | None) -> RequestContext:
        return replace(self, error_message=message)
