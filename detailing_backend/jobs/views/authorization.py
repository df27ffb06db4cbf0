# jobs/views/authorization.py

"""
PUBLIC ADD-ON AUTHORIZATION

The customer follows the link from the SMS/email. The unguessable token is
the only credential; no login.
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from jobs.serializers import AddonResponseSerializer, PublicAddonSerializer
from jobs.services.exceptions import AddonNotFoundError, JobError
from jobs.views.errors import job_error_response
from jobs.views.job import build_controller


class AddonAuthorizationView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [AnonRateThrottle]

    def _find(self, controller, token):
        job = controller.get_job(controller.repository.job_id_for_addon_token(token))
        addon = next((a for a in job.addons if a.authorization_token == token), None)
        if addon is None:
            raise AddonNotFoundError("Authorization link is invalid")
        return addon

    @extend_schema(responses=PublicAddonSerializer, tags=["Jobs (public)"])
    def get(self, request, token):
        controller = build_controller(request)
        try:
            addon = self._find(controller, token)
        except JobError as exc:
            return job_error_response(exc)
        return Response(PublicAddonSerializer(addon).data)

    @extend_schema(request=AddonResponseSerializer, responses=PublicAddonSerializer, tags=["Jobs (public)"])
    def post(self, request, token):
        serializer = AddonResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        controller = build_controller(request)
        try:
            result = controller.respond_by_token(token, approve=serializer.validated_data["approve"])
        except JobError as exc:
            return job_error_response(exc)
        return Response(PublicAddonSerializer(result.addon).data)
