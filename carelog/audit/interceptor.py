# carelog/audit/interceptor.py
"""
Response-driven audit capture.

Views opt in by declaring `audit_actions`, keyed by viewset action name (or
HTTP method for plain APIViews):

    audit_actions = {
        "dismiss": AuditedAction("dismissed_audit_notification", "Dismissed audit notification"),
    }

The middleware derives the entry from the finalized response and writes it
when Django closes the response, after the body has been handed to the
server. Nothing it does changes what the client receives.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from carelog.audit.context import RequestContext, Target
from carelog.audit.services import AuditService

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
SENSITIVE_FIELDS = frozenset({"password", "confirmpassword", "oldpassword", "newpassword", "refresh", "access", "token"})


@dataclass(frozen=True)
class AuditedAction:
    action_type: str
    description: str | None = None
    target_type: str | None = None


def sanitize(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: (REDACTED if str(k).replace("_", "").lower() in SENSITIVE_FIELDS else sanitize(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize(v) for v in value]
    return value


def _resolve_audited_action(view_func, method: str) -> AuditedAction | None:
    view_class = getattr(view_func, "cls", None)
    audit_actions = getattr(view_class, "audit_actions", None)
    if not audit_actions:
        return None
    # ViewSet.as_view() exposes the method -> action mapping
    actions = getattr(view_func, "actions", None) or {}
    action_name = actions.get(method.lower())
    return audit_actions.get(action_name) or audit_actions.get(method.upper())


def _error_message(data: Any) -> str | None:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("detail"):
            return str(data["detail"])
    return None


def build_intercepted_entry(request, response, audited: AuditedAction, view_kwargs: dict) -> dict[str, Any]:
    renderer_context = getattr(response, "renderer_context", None) or {}
    drf_request = renderer_context.get("request")
    data = getattr(response, "data", None)
    status_code = response.status_code
    failed = status_code >= 400

    target_id = view_kwargs.get("pk") or view_kwargs.get("id")
    if target_id is None and isinstance(data, dict):
        target_id = data.get("id")

    request_body = None
    if drf_request is not None and request.method in ("POST", "PUT", "PATCH", "DELETE"):
        try:
            request_body = sanitize(dict(drf_request.data))
        except Exception:
            logger.debug("Request body not captured for %s", request.path, exc_info=True)

    metadata = {
        "requestMethod": request.method,
        "requestUrl": request.get_full_path(),
        "responseStatus": status_code,
        "result": "failure" if failed else "success",
    }
    if request_body:
        metadata["requestBody"] = request_body

    context = RequestContext.from_request(request)
    if failed:
        context = context.with_error(_error_message(data) or f"HTTP {status_code}")

    user = drf_request.user if drf_request is not None else getattr(request, "user", None)
    description = audited.description or f"{audited.action_type} performed via {request.method} {request.path}"

    return {
        "actor": user if getattr(user, "is_authenticated", False) else None,
        "action_type": audited.action_type,
        "description": description,
        "target": Target(audited.target_type, target_id, None) if (audited.target_type or target_id) else None,
        "metadata": metadata,
        "context": context,
    }


def run_on_close(response, callback) -> None:
    """
    Run callback once the server has sent the response and closed it.

    Django has no public hook for this. HttpResponseBase.close() runs every
    callable in _resource_closers, which is also how it closes file streams.
    """
    response._resource_closers.append(callback)


class AuditResponseMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        capture = getattr(request, "_audit_capture", None)
        if capture is None:
            return response

        audited, view_kwargs = capture
        try:
            entry = build_intercepted_entry(request, response, audited, view_kwargs)
        except Exception:
            logger.exception("Could not derive audit entry for %s %s", request.method, request.path)
            return response

        run_on_close(response, lambda: self._write(entry))
        return response

    def process_view(self, request, view_func, view_args, view_kwargs):
        audited = _resolve_audited_action(view_func, request.method)
        if audited is not None:
            request._audit_capture = (audited, dict(view_kwargs))
        return None

    @staticmethod
    def _write(entry: dict[str, Any]) -> None:
        try:
            AuditService.record(**entry)
        except Exception:
            logger.exception("Deferred audit write failed for %r", entry.get("action_type"))
