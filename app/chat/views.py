"""
API views for chat.

This module provides REST endpoints for clients that read or send chat
messages without holding a gateway connection. The caller is always one of
the two participants: request.user is the implicit side of every pair.

URL Structure:
    /api/v1/chat/messages/?user_id=&gym_name=   GET   history with user_id
    /api/v1/chat/messages/                      POST  send a message
    /api/v1/chat/partners/?gym_name=            GET   caller's chat partners
    /api/v1/chat/rename-scope/                  POST  move caller's chats to a new gym name

Design Decisions:
    - Serializers validate shape, ConversationService enforces the rules
    - Expected failures answer 400 with ServiceResult.to_response()
    - Messages sent over HTTP are fanned out to live gateway sessions too
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.constants import BROADCAST_MODE
from chat.gateway import ChannelLayerBroadcaster
from chat.permissions import IsGymOwnerRole
from chat.serializers import (
    HistoryQuerySerializer,
    MessageCreateSerializer,
    MessageSerializer,
    PartnerSerializer,
    PartnersQuerySerializer,
    RenameScopeSerializer,
)
from chat.services import ConversationService
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _publish_to_gateway(payload: dict, participant_ids: tuple[int, int]) -> None:
    """Deliver a message stored over HTTP to connected gateway sessions."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    mode = getattr(settings, "CHAT_BROADCAST_MODE", BROADCAST_MODE.PARTICIPANTS)
    broadcaster = ChannelLayerBroadcaster(channel_layer, mode)
    async_to_sync(broadcaster.publish)(payload, participant_ids)


class ConversationMessagesView(APIView):
    """
    Read or append to the caller's conversation with another user.

    GET /api/v1/chat/messages/?user_id=9&gym_name=Iron%20Temple
        Chronological history; empty list when the two never talked there.

    POST /api/v1/chat/messages/
        Payload: recipient_id, gym_name, text
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_chat_history",
        summary="Get conversation history",
        description=(
            "Messages between the current user and user_id for one gym, "
            "oldest first. Returns an empty list when no conversation exists."
        ),
        parameters=[
            OpenApiParameter("user_id", OpenApiTypes.INT, OpenApiParameter.QUERY, required=True),
            OpenApiParameter("gym_name", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
        ],
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    def get(self, request):
        """Return history between the caller and user_id."""
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            messages = ConversationService.get_history(
                request.user.id,
                query.validated_data["user_id"],
                query.validated_data["gym_name"],
            )
        except ValidationError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        return Response(MessageSerializer(messages, many=True).data)

    @extend_schema(
        operation_id="send_chat_message",
        summary="Send message",
        description=(
            "Send a message to recipient_id about a gym. The conversation is "
            "created on the first message."
        ),
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Validation failed"),
        },
        tags=["Chat - Messages"],
    )
    def post(self, request):
        """Send a message as the current user."""
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        recipient_id = serializer.validated_data["recipient_id"]

        result = ConversationService.send_message(
            sender_id=request.user.id,
            recipient_id=recipient_id,
            gym_name=serializer.validated_data["gym_name"],
            text=serializer.validated_data["text"],
        )

        if not result.success:
            return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)

        payload = dict(MessageSerializer(result.data).data)
        try:
            _publish_to_gateway(payload, (request.user.id, recipient_id))
        except Exception:
            # Stored already; live delivery is best effort
            logger.exception(f"Gateway publish failed for message {payload['id']}")

        return Response(payload, status=status.HTTP_201_CREATED)


class PartnersView(APIView):
    """
    List everyone the caller chats with in one gym.

    GET /api/v1/chat/partners/?gym_name=Iron%20Temple
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_chat_partners",
        summary="List chat partners",
        description=(
            "Users who have a conversation with the current user for the given "
            "gym, with first and last name. Users that no longer resolve are omitted."
        ),
        parameters=[
            OpenApiParameter("gym_name", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
        ],
        responses={200: PartnerSerializer(many=True)},
        tags=["Chat - Partners"],
    )
    def get(self, request):
        """List the caller's partners for a gym."""
        query = PartnersQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        partners = ConversationService.list_partners(
            request.user.id,
            query.validated_data["gym_name"],
        )
        return Response(PartnerSerializer(partners, many=True).data)


class RenameScopeView(APIView):
    """
    Move the caller's conversations to a new gym name.

    POST /api/v1/chat/rename-scope/
        Payload: old_gym_name, new_gym_name

    Restricted to gym owners and admins; renaming a gym through the gyms
    API does this automatically.
    """

    permission_classes = [IsAuthenticated, IsGymOwnerRole]

    @extend_schema(
        operation_id="rename_chat_scope",
        summary="Rename gym scope",
        request=RenameScopeSerializer,
        responses={
            200: OpenApiResponse(description="{'count': <conversations moved>}"),
            400: OpenApiResponse(description="Validation failed"),
        },
        tags=["Chat - Partners"],
    )
    def post(self, request):
        """Rename the caller's conversations from old_gym_name to new_gym_name."""
        serializer = RenameScopeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        count = ConversationService.rename_gym_scope(
            request.user.id,
            serializer.validated_data["old_gym_name"],
            serializer.validated_data["new_gym_name"],
        )
        return Response({"count": count})
