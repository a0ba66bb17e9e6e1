# carelog/iam/api/auth.py

from __future__ import annotations

from datetime import timedelta
from typing import Any

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer

from carelog.audit.context import RequestContext
from carelog.audit.recorders import log_failed_login, log_login, log_logout
from carelog.iam.api.schema_serializers import DetailResponseSerializer, LoginRequestSerializer
from carelog.iam.auth import access_cookie_name, refresh_cookie_name


def _jwt_settings() -> dict:
    return getattr(settings, "SIMPLE_JWT", {}) or {}


def _seconds(value: Any) -> int:
    """
    JWT lifetime setting -> seconds (timedelta or a number of seconds).
    0 makes a session cookie.
    """
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _set_auth_cookies(response: Response, *, access: str, refresh: str) -> None:
    cfg = _jwt_settings()
    cookies = (
        (access_cookie_name(), access, cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=10))),
        (refresh_cookie_name(), refresh, cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(days=14))),
    )
    for name, value, lifetime in cookies:
        response.set_cookie(
            name,
            value,
            max_age=_seconds(lifetime),
            httponly=True,
            secure=bool(cfg.get("AUTH_COOKIE_SECURE", False)),
            samesite=cfg.get("AUTH_COOKIE_SAMESITE", "Lax"),
            path="/",
        )


def _clear_auth_cookies(response: Response) -> None:
    for name in (access_cookie_name(), refresh_cookie_name()):
        response.delete_cookie(name, path="/")


class LoginView(APIView):
    """
    Username/password sign-in. Successful and failed attempts are both
    written to the audit trail.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        request=LoginRequestSerializer,
        responses={200: DetailResponseSerializer},
        tags=["IAM"],
    )
    def post(self, request):
        serializer = TokenObtainPairSerializer(data=request.data)
        context = RequestContext.from_request(request)
        try:
            serializer.is_valid(raise_exception=True)
        except AuthenticationFailed:
            username = request.data.get("username")
            log_failed_login(
                str(username) if username is not None else None, reason="invalid_credentials", context=context
            )
            raise

        log_login(serializer.user, context=context)

        res = Response({"detail": "login ok"}, status=status.HTTP_200_OK)
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )
        return res


class RefreshView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        request=None,
        responses={200: DetailResponseSerializer},
        tags=["IAM"],
    )
    def post(self, request):
        refresh = request.COOKIES.get(refresh_cookie_name())

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        serializer.is_valid(raise_exception=True)

        res = Response({"detail": "refreshed"}, status=status.HTTP_200_OK)
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            # rotation may or may not issue a new refresh token
            refresh=serializer.validated_data.get("refresh", refresh),
        )
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=None,
        responses={200: DetailResponseSerializer},
        tags=["IAM"],
    )
    def post(self, request):
        log_logout(request.user, context=RequestContext.from_request(request))
        res = Response({"detail": "logged out"}, status=status.HTTP_200_OK)
        _clear_auth_cookies(res)
        return res
