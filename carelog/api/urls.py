# carelog/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from carelog.alerts.api.views import AuditNotificationViewSet
from carelog.audit.api.views import (
    AuditActionTypesView,
    AuditExportView,
    AuditLogViewSet,
    AuditStatsView,
    AuditTargetTypesView,
    LoginHistoryView,
    LogReportView,
)
from carelog.iam.api.auth import LoginView, LogoutView, RefreshView
from carelog.iam.api.me import MeView

router = DefaultRouter()

router.register(r"audit/logs", AuditLogViewSet, basename="audit-logs")
router.register(r"audit-notifications", AuditNotificationViewSet, basename="audit-notifications")

urlpatterns = [
    # Auth + /me
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),

    # Audit (non-ViewSet endpoints)
    path("audit/stats/", AuditStatsView.as_view(), name="audit-stats"),
    path("audit/export/", AuditExportView.as_view(), name="audit-export"),
    path("audit/actions/", AuditActionTypesView.as_view(), name="audit-actions"),
    path("audit/target-types/", AuditTargetTypesView.as_view(), name="audit-target-types"),
    path("audit/login-history/", LoginHistoryView.as_view(), name="audit-login-history"),
    path("audit/log-report/", LogReportView.as_view(), name="audit-log-report"),

    path("", include(router.urls)),
]
