"""
ViewSets for the gym directory API.

URL Structure:
    /api/v1/gyms/        GET (list, filter by city/name/owner), POST
    /api/v1/gyms/{id}/   GET, PATCH

Design Decisions:
    - Writes go through GymService so a rename reaches chat
    - No DELETE: chats reference gyms by name and outlive listings
"""

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from gyms.filters import GymFilter
from gyms.models import Gym
from gyms.serializers import GymSerializer
from gyms.services import GymService

ERROR_STATUS = {
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
}


def _failure_response(result):
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


@extend_schema_view(
    list=extend_schema(summary="List gyms", tags=["Gyms"]),
    retrieve=extend_schema(summary="Get gym", tags=["Gyms"]),
    create=extend_schema(
        summary="Create gym",
        responses={201: GymSerializer, 403: OpenApiResponse(description="Not a gym owner")},
        tags=["Gyms"],
    ),
    partial_update=extend_schema(
        summary="Update gym",
        description="Owner only. Renaming a gym also renames its chats.",
        responses={200: GymSerializer, 403: OpenApiResponse(description="Not the owner")},
        tags=["Gyms"],
    ),
)
class GymViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = GymSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = GymFilter
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_queryset(self):
        return Gym.objects.all()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        fields.pop("owner", None)

        result = GymService.create_gym(request.user, **fields)
        if not result.success:
            return _failure_response(result)
        return Response(self.get_serializer(result.data).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        gym = self.get_object()
        serializer = self.get_serializer(gym, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)
        changes.pop("owner", None)

        result = GymService.update_gym(gym, request.user, **changes)
        if not result.success:
            return _failure_response(result)
        return Response(self.get_serializer(result.data).data)
