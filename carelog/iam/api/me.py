# carelog/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from carelog.iam.actors import Actor, resolve_display_name
from carelog.iam.api.schema_serializers import MeResponseSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["IAM"], responses={200: MeResponseSerializer})
    def get(self, request):
        """
        Returns the caller and the role/name audit records are written with.
        """
        actor = Actor.from_user(request.user)
        return Response(
            {
                "user": {
                    "id": request.user.id,
                    "username": getattr(request.user, "username", None),
                    "email": getattr(request.user, "email", None),
                    "is_superuser": bool(getattr(request.user, "is_superuser", False)),
                },
                "role": actor.role,
                "display_name": resolve_display_name(actor),
            },
            status=status.HTTP_200_OK,
        )
