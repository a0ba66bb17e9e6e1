from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from carelog.alerts.api.filters import NotificationFilter
from carelog.alerts.api.serializers import NotificationSerializer
from carelog.alerts.models import Notification, NotificationSeverity
from carelog.alerts.selectors import (
    ACTIVE_LIMIT,
    active_notifications_qs,
    by_priority,
    list_active_notifications,
    unread_count,
)
from carelog.alerts.services import NotificationService
from carelog.audit import constants as A
from carelog.audit.interceptor import AuditedAction
from carelog.audit.models import TargetType
from carelog.common.permissions import AuditNotificationPermission


class AuditNotificationViewSet(viewsets.GenericViewSet):
    """
    Polling surface for critical-event notifications.
    """
    permission_classes = [AuditNotificationPermission]
    serializer_class = NotificationSerializer
    queryset = Notification.objects.none()
    lookup_value_regex = r"\d+"

    audit_actions = {
        "mark_read": AuditedAction(A.READ_AUDIT_NOTIFICATION, "Marked audit notification as read", TargetType.AUDIT),
        "dismiss": AuditedAction(A.DISMISSED_AUDIT_NOTIFICATION, "Dismissed audit notification", TargetType.AUDIT),
        "dismiss_all": AuditedAction(A.DISMISSED_ALL_AUDIT_NOTIFICATIONS, "Dismissed all audit notifications"),
    }

    @extend_schema(
        tags=["Audit notifications"],
        parameters=[
            OpenApiParameter("severity", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             enum=NotificationSeverity.values),
            OpenApiParameter("actionType", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("includeRead", OpenApiTypes.BOOL, OpenApiParameter.QUERY, required=False,
                             description="Include notifications already read (default false)."),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def list(self, request):
        data = request.query_params.copy()
        data.setdefault("includeRead", "false")

        filterset = NotificationFilter(data, queryset=active_notifications_qs())
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)

        rows = list(by_priority(filterset.qs)[:ACTIVE_LIMIT])
        return Response(
            {
                "notifications": NotificationSerializer(rows, many=True).data,
                "count": len(rows),
                "unreadCount": unread_count(),
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Audit notifications"], responses={200: OpenApiTypes.OBJECT})
    @action(methods=["GET"], detail=False, url_path="critical")
    def critical(self, request):
        rows = list_active_notifications(severity=NotificationSeverity.CRITICAL)
        return Response(
            {"notifications": NotificationSerializer(rows, many=True).data, "count": len(rows)},
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Audit notifications"], request=None, responses={200: NotificationSerializer})
    @action(methods=["PUT"], detail=True, url_path="read")
    def mark_read(self, request, pk=None):
        notification = NotificationService.mark_read(notification_id=int(pk))
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Audit notifications"], request=None, responses={200: NotificationSerializer})
    @action(methods=["PUT"], detail=True, url_path="dismiss")
    def dismiss(self, request, pk=None):
        notification = NotificationService.dismiss(notification_id=int(pk), actor_id=request.user.pk)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Audit notifications"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(methods=["PUT"], detail=False, url_path="dismiss-all")
    def dismiss_all(self, request):
        count = NotificationService.dismiss_all(actor_id=request.user.pk)
        return Response({"detail": f"Dismissed {count} notifications", "count": count}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Audit notifications"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(methods=["POST"], detail=False, url_path="cleanup")
    def cleanup(self, request):
        count = NotificationService.sweep_expired()
        return Response({"detail": f"Dismissed {count} expired notifications", "count": count}, status=status.HTTP_200_OK)
