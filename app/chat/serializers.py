"""
Serializers for chat API.

This module provides serializers for the chat system:
- Message output (shared by the REST views and the WebSocket gateway)
- Request validation for history, send, partners and rename

Serializer Hierarchy:
    MessageSerializer: Stored message with its gym scope
    PartnerSerializer: Chat partner display name

    HistoryQuerySerializer: ?user_id=&gym_name= for history
    MessageCreateSerializer: Send new message
    PartnersQuerySerializer: ?gym_name= for partner list
    RenameScopeSerializer: Old and new gym name

Design Decisions:
    - Read and write serializers are separate for clarity
    - Input serializers only check shape; business rules live in
      ConversationService so the gateway and the REST API agree
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG
from chat.models import Message


# =============================================================================
# Output Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Serializer for reading messages.

    Fields:
        id, conversation, gym_name, sender, text, timestamp
    """

    gym_name = serializers.CharField(source="conversation.gym_name", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation",
            "gym_name",
            "sender",
            "text",
            "timestamp",
        ]
        read_only_fields = fields


class PartnerSerializer(serializers.Serializer):
    """A user the caller has a conversation with."""

    user_id = serializers.IntegerField()
    first_name = serializers.CharField()
    last_name = serializers.CharField(allow_blank=True)


# =============================================================================
# Input Serializers
# =============================================================================


class HistoryQuerySerializer(serializers.Serializer):
    """Query parameters for the message history endpoint."""

    user_id = serializers.IntegerField(min_value=1)
    gym_name = serializers.CharField(max_length=MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH)


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending a message.

    Whitespace is kept as typed; ConversationService rejects blank text.
    """

    recipient_id = serializers.IntegerField(min_value=1)
    gym_name = serializers.CharField(max_length=MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH)
    text = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=False,
    )


class PartnersQuerySerializer(serializers.Serializer):
    """Query parameters for the partner list endpoint."""

    gym_name = serializers.CharField(max_length=MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH)


class RenameScopeSerializer(serializers.Serializer):
    """Serializer for moving the caller's conversations to a new gym name."""

    old_gym_name = serializers.CharField(max_length=MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH)
    new_gym_name = serializers.CharField(max_length=MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH)

    def validate(self, attrs):
        if attrs["old_gym_name"] == attrs["new_gym_name"]:
            raise serializers.ValidationError(
                {"new_gym_name": "New gym name must differ from the old one."}
            )
        return attrs
