# carelog/audit/api/views.py
from __future__ import annotations

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from carelog.audit import constants as A
from carelog.audit.api.serializers import (
    ActionRecordSerializer,
    AuditFilterParamsSerializer,
    AuditListParamsSerializer,
    CleanupRequestSerializer,
    CleanupResponseSerializer,
    LoginHistoryEntrySerializer,
    LogReportRequestSerializer,
    StatsParamsSerializer,
)
from carelog.audit.context import RequestContext, Target
from carelog.audit.exports import export_filename, export_records, render_csv
from carelog.audit.interceptor import AuditedAction
from carelog.audit.metadata import ExportMetadata
from carelog.audit.models import ActionRecord, TargetType
from carelog.audit.recorders import log_report_generated
from carelog.audit.retention import RetentionService
from carelog.audit.selectors import (
    audit_stats,
    distinct_action_types,
    distinct_target_types,
    get_record,
    list_records,
    login_history,
)
from carelog.audit.services import AuditService
from carelog.common.permissions import ROLE_ADMIN, ROLE_MANAGEMENT, AuditPermission, has_role

FILTER_PARAMETERS = [
    OpenApiParameter("userRole", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                     enum=["admin", "doctor", "management", "staff", "patient"]),
    OpenApiParameter("actionType", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                     description="Exact action type (e.g. deleted_user)."),
    OpenApiParameter("targetType", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
    OpenApiParameter("startDate", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
    OpenApiParameter("endDate", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
    OpenApiParameter("search", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                     description="Case-insensitive match on actor name, description or target name."),
]

AUDIT_LOGS_TARGET = Target(TargetType.AUDIT, None, "Audit Logs")


class AuditLogViewSet(viewsets.GenericViewSet):
    """
    Read access to the audit trail, plus the retention purge.
    Doctors only ever see records they performed themselves.
    """
    permission_classes = [AuditPermission]
    serializer_class = ActionRecordSerializer
    queryset = ActionRecord.objects.none()
    lookup_value_regex = r"\d+"

    audit_actions = {
        "retrieve": AuditedAction(A.VIEWED_AUDIT_RECORD, "Viewed audit record", TargetType.AUDIT),
    }

    @extend_schema(
        tags=["Audit"],
        parameters=[
            *FILTER_PARAMETERS,
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False,
                             description="1-based page (default 1)."),
            OpenApiParameter("limit", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False,
                             description="Page size, 1..100 (default 50)."),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def list(self, request):
        params = AuditListParamsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        own_only = not has_role(request.user, ROLE_ADMIN, ROLE_MANAGEMENT)
        filters = params.to_filters(actor_id=request.user.pk if own_only else None)

        page = list_records(
            filters,
            page=params.validated_data["page"],
            limit=params.validated_data["limit"],
        )

        AuditService.record(
            actor=request.user,
            action_type=A.VIEWED_AUDIT_LOGS,
            description="Viewed audit logs",
            target=AUDIT_LOGS_TARGET,
            metadata={"filters": filters.as_metadata(), "resultsCount": page.total_count},
            context=RequestContext.from_request(request),
        )

        return Response(
            {
                "logs": ActionRecordSerializer(page.rows, many=True).data,
                "pagination": page.window.as_dict(),
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Audit"], responses={200: ActionRecordSerializer})
    def retrieve(self, request, pk=None):
        return Response(ActionRecordSerializer(get_record(int(pk))).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit"],
        request=CleanupRequestSerializer,
        responses={200: CleanupResponseSerializer},
    )
    @action(methods=["DELETE"], detail=False, url_path="cleanup")
    def cleanup(self, request):
        body = CleanupRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        result = RetentionService.purge(
            body.validated_data["daysToKeep"],
            actor=request.user,
            context=RequestContext.from_request(request),
        )
        return Response(result.as_dict(), status=status.HTTP_200_OK)


class AuditStatsView(APIView):
    permission_classes = [AuditPermission]
    permission_action = "stats"

    @extend_schema(
        tags=["Audit"],
        parameters=FILTER_PARAMETERS[3:5],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request):
        params = StatsParamsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        stats = audit_stats(
            start=params.validated_data.get("startDate"),
            end=params.validated_data.get("endDate"),
        )
        return Response(stats, status=status.HTTP_200_OK)


class AuditExportView(APIView):
    permission_classes = [AuditPermission]
    permission_action = "export"

    @extend_schema(
        tags=["Audit"],
        parameters=FILTER_PARAMETERS,
        responses={(200, "text/csv"): OpenApiResponse(response=OpenApiTypes.STR, description="CSV file")},
    )
    def get(self, request):
        params = AuditFilterParamsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        filters = params.to_filters()

        rows = export_records(filters)
        body = render_csv(rows)

        AuditService.record(
            actor=request.user,
            action_type=A.EXPORTED_AUDIT_LOGS,
            description=f"Exported {len(rows)} audit logs to CSV",
            target=AUDIT_LOGS_TARGET,
            metadata=ExportMetadata(format="csv", filters=filters.as_metadata(), exported_count=len(rows)),
            context=RequestContext.from_request(request),
        )

        response = HttpResponse(body, content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{export_filename()}"'
        return response


class AuditActionTypesView(APIView):
    permission_classes = [AuditPermission]
    permission_action = "actions"

    @extend_schema(tags=["Audit"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        return Response({"actions": distinct_action_types()}, status=status.HTTP_200_OK)


class AuditTargetTypesView(APIView):
    permission_classes = [AuditPermission]
    permission_action = "target_types"

    @extend_schema(tags=["Audit"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        return Response({"targetTypes": distinct_target_types()}, status=status.HTTP_200_OK)


class LoginHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Audit"], responses={200: LoginHistoryEntrySerializer(many=True)})
    def get(self, request):
        history = login_history(actor_id=request.user.pk)
        return Response(
            {"loginHistory": LoginHistoryEntrySerializer(history, many=True).data},
            status=status.HTTP_200_OK,
        )


class LogReportView(APIView):
    """
    Lets report screens record that a report was generated.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Audit"], request=LogReportRequestSerializer, responses={201: OpenApiTypes.OBJECT})
    def post(self, request):
        body = LogReportRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        details = body.validated_data["reportDetails"]

        record_id = log_report_generated(
            request.user,
            report_type=body.validated_data["reportType"],
            report_name=details.get("reportName"),
            format=details.get("format"),
            date_range=details.get("dateRange"),
            filters=details.get("filters"),
            context=RequestContext.from_request(request),
        )
        return Response({"detail": "Report generation logged", "recordId": record_id}, status=status.HTTP_201_CREATED)
