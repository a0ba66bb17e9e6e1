# carelog/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

# First match wins; APIException subclasses not listed fall back to their default_code.
_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ValidationError, "validation_error"),
    (NotAuthenticated, "not_authenticated"),
    (PermissionDenied, "permission_denied"),
    (Http404, "not_found"),
)

GENERIC_FAILURE = "Request failed."
SERVER_FAILURE = "Unexpected server error."


def ensure_request_id(request) -> str:
    """
    Stable id for the request: already assigned, else the inbound
    X-Request-Id header, else a fresh uuid. Stored on the request.
    """
    if request is None:
        return uuid.uuid4().hex
    rid = getattr(request, "request_id", None)
    if not rid:
        rid = (getattr(request, "META", None) or {}).get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
        setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


def _as_drf_exception(exc: Exception) -> Exception:
    # services raise plain Django exceptions
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "error_dict"):
            return ValidationError(detail=exc.message_dict)
        messages = exc.messages
        return ValidationError(detail={"detail": messages[0] if len(messages) == 1 else messages})
    if isinstance(exc, ObjectDoesNotExist):
        return NotFound()
    return exc


def _code_for(exc: Exception, http_status: int) -> str:
    for exc_class, code in _ERROR_CODES:
        if isinstance(exc, exc_class):
            return code
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", None) or "api_error"
    return "server_error" if http_status >= 500 else "error"


def _split_message(data: Any) -> tuple[str, Any]:
    """
    {"detail": msg}            -> (msg, None)
    {"detail": msg, **fields}  -> (msg, fields)
    anything else              -> (GENERIC_FAILURE, data)
    """
    if not isinstance(data, dict) or "detail" not in data:
        return GENERIC_FAILURE, data
    detail = data["detail"]
    if isinstance(detail, list) and len(detail) == 1:
        detail = detail[0]
    rest = {k: v for k, v in data.items() if k != "detail"}
    return str(detail), rest or None


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    exc = _as_drf_exception(exc)
    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled API error", exc_info=exc)
        envelope = build_error_envelope(
            request=request,
            code="server_error",
            message=SERVER_FAILURE,
            details=str(exc) if settings.DEBUG else None,
        )
        return Response(envelope, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    message, details = _split_message(response.data)
    envelope = build_error_envelope(
        request=request,
        code=_code_for(exc, response.status_code),
        message=message,
        details=details,
    )
    return Response(envelope, status=response.status_code, headers=response.headers)
