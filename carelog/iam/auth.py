# carelog/iam/auth.py

from __future__ import annotations

import logging

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

logger = logging.getLogger(__name__)

ACCESS_COOKIE_DEFAULT = "cl_access"
REFRESH_COOKIE_DEFAULT = "cl_refresh"


def access_cookie_name() -> str:
    return (getattr(settings, "SIMPLE_JWT", {}) or {}).get("AUTH_COOKIE", ACCESS_COOKIE_DEFAULT)


def refresh_cookie_name() -> str:
    return (getattr(settings, "SIMPLE_JWT", {}) or {}).get("AUTH_COOKIE_REFRESH", REFRESH_COOKIE_DEFAULT)


class CookieOrHeaderJWTAuthentication(JWTAuthentication):
    """
    Bearer header first, then the HttpOnly access cookie.

    A bad header token is rejected (401). A stale cookie is ignored so the
    browser can still reach login/refresh; protected views then answer
    with NotAuthenticated.
    """

    def authenticate(self, request):
        if self.get_header(request):
            return super().authenticate(request)

        raw_token = request.COOKIES.get(access_cookie_name())
        if not raw_token:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
        except InvalidToken:
            logger.debug("Ignoring invalid access cookie on %s", request.path)
            return None
        return self.get_user(validated_token), validated_token
