"""
Chat system service layer.

This module provides the business logic for gym chats, sitting between the
transports (WebSocket gateway, REST views, gym lifecycle) and the store.

Services:
    ConversationService: Send messages, read history, list partners, rename gym scopes

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures on writes return ServiceResult.failure()
    - Read operations return plain data and raise ValidationError on bad input
    - Storage failures (PersistenceError) propagate to the transport, which
      decides how to degrade

Usage:
    from chat.services import ConversationService

    result = ConversationService.send_message(
        sender_id=member.id,
        recipient_id=owner.id,
        gym_name="Iron Temple",
        text="Are you open on Sundays?",
    )
    if result.success:
        message = result.data

    history = ConversationService.get_history(member.id, owner.id, "Iron Temple")
    partners = ConversationService.list_partners(owner.id, "Iron Temple")
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from authentication.services import UserDirectory
from chat.constants import MESSAGE_CONFIG
from chat.store import ConversationStore
from core.exceptions import ValidationError
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from chat.models import Conversation, Message

logger = logging.getLogger(__name__)


def _coerce_user_id(value: Any, field: str) -> int:
    """
    Normalize a user identifier coming from a transport.

    Accepts ints and digit strings. Booleans, blanks and anything else
    raise ValidationError.
    """
    if isinstance(value, bool):
        value = None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(
            f"{field} must be a positive integer user id",
            error_code="INVALID_IDENTIFIER",
            details={"field": field},
        )
    return value


def _clean_gym_name(value: Any, field: str = "gym_name") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field} is required",
            error_code="VALIDATION_ERROR",
            details={"field": field},
        )
    if len(value) > MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH:
        raise ValidationError(
            f"{field} cannot exceed {MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH} characters",
            error_code="VALIDATION_ERROR",
            details={"field": field},
        )
    return value


class ConversationService(BaseService):
    """
    Service for gym chat operations.

    Methods:
        ensure_conversation: Find or create the conversation for two users in a gym
        send_message: Validate and append a message (creates the conversation lazily)
        get_history: Chronological messages between two users in a gym
        list_partners: Display names of everyone a user chats with in a gym
        rename_gym_scope: Move a user's conversations to a new gym name
    """

    @classmethod
    def ensure_conversation(
        cls,
        user_a_id: Any,
        user_b_id: Any,
        gym_name: Any,
    ) -> ServiceResult[Conversation]:
        """
        Find or create the conversation between two users for a gym.

        Idempotent: repeated and concurrent calls return the same conversation.

        Error codes:
            INVALID_IDENTIFIER: A user id is missing or malformed
            VALIDATION_ERROR: gym_name missing or too long
            SAME_USER: Both ids refer to the same user
        """
        try:
            user_a_id = _coerce_user_id(user_a_id, "user_a_id")
            user_b_id = _coerce_user_id(user_b_id, "user_b_id")
            gym_name = _clean_gym_name(gym_name)
            conversation, created = ConversationStore.ensure_conversation(
                user_a_id, user_b_id, gym_name
            )
        except ValidationError as e:
            return cls.handle_exception(e, "ensure_conversation rejected")

        if created:
            cls.get_logger().info(
                f"Opened conversation {conversation.pk} in gym {gym_name!r}"
            )
        return ServiceResult.success(conversation)

    @classmethod
    def send_message(
        cls,
        sender_id: Any,
        recipient_id: Any,
        gym_name: Any,
        text: Any,
        timestamp: datetime | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message from sender to recipient within a gym.

        The conversation is created on first message. Upsert and insert happen
        in one store call, so a rejected message leaves nothing behind.

        Args:
            sender_id: User sending the message
            recipient_id: Other participant
            gym_name: Gym the conversation is about
            text: Message text (must contain non-whitespace characters)
            timestamp: Send time; now when omitted

        Returns:
            ServiceResult with the stored Message

        Error codes:
            INVALID_IDENTIFIER: sender_id or recipient_id missing/malformed
            SAME_USER: Sender and recipient are the same user
            UNKNOWN_USER: Either user does not exist or is deactivated
            VALIDATION_ERROR: gym_name or text missing
            EMPTY_TEXT / TEXT_TOO_LONG: Text rejected by the store

        Raises:
            PersistenceError: Storage failure (not an expected failure)
        """
        try:
            sender_id = _coerce_user_id(sender_id, "sender_id")
            recipient_id = _coerce_user_id(recipient_id, "recipient_id")
            gym_name = _clean_gym_name(gym_name)
            if not isinstance(text, str):
                raise ValidationError(
                    "text is required",
                    error_code="VALIDATION_ERROR",
                    details={"field": "text"},
                )
        except ValidationError as e:
            return cls.handle_exception(e, "send_message rejected")

        if sender_id == recipient_id:
            return ServiceResult.failure(
                "Cannot send a message to yourself",
                error_code="SAME_USER",
                errors={"recipient_id": ["Cannot send a message to yourself"]},
            )

        known = UserDirectory.existing_user_ids([sender_id, recipient_id])
        missing = sorted({sender_id, recipient_id} - known)
        if missing:
            return ServiceResult.failure(
                f"Unknown user(s): {', '.join(str(user_id) for user_id in missing)}",
                error_code="UNKNOWN_USER",
            )

        try:
            message = ConversationStore.append_message(
                sender_id,
                recipient_id,
                gym_name,
                sender_id=sender_id,
                text=text,
                timestamp=timestamp,
            )
        except ValidationError as e:
            return cls.handle_exception(e, "send_message rejected")

        cls.get_logger().debug(
            f"Message {message.pk} from user {sender_id} to user {recipient_id} "
            f"in gym {gym_name!r}"
        )
        return ServiceResult.success(message)

    @classmethod
    def get_history(cls, user_a_id: Any, user_b_id: Any, gym_name: Any) -> list[Message]:
        """
        Messages exchanged by two users in a gym, oldest first.

        Returns an empty list when the two have not talked there yet.

        Raises:
            ValidationError: Malformed ids or missing gym name
            PersistenceError: Storage failure
        """
        user_a_id = _coerce_user_id(user_a_id, "user_a_id")
        user_b_id = _coerce_user_id(user_b_id, "user_b_id")
        gym_name = _clean_gym_name(gym_name)
        if user_a_id == user_b_id:
            return []
        return ConversationStore.get_messages(user_a_id, user_b_id, gym_name)

    @classmethod
    def list_partners(cls, owner_id: Any, gym_name: Any) -> list[dict[str, Any]]:
        """
        Everyone owner_id has a conversation with in the gym.

        Partners that cannot be resolved to a display name (deleted,
        deactivated, no profile) are left out.

        Returns:
            [{"user_id": int, "first_name": str, "last_name": str}, ...]
            in conversation order (most recent activity first)
        """
        owner_id = _coerce_user_id(owner_id, "owner_id")
        gym_name = _clean_gym_name(gym_name)

        partners = []
        for conversation in ConversationStore.list_conversations_for_user(owner_id, gym_name):
            partner_id = conversation.other_participant_id(owner_id)
            name = UserDirectory.find_display_name(partner_id)
            if name is None:
                cls.get_logger().debug(
                    f"Skipping unresolved chat partner {partner_id} of user {owner_id}"
                )
                continue
            partners.append(
                {
                    "user_id": partner_id,
                    "first_name": name.first_name,
                    "last_name": name.last_name,
                }
            )
        return partners

    @classmethod
    def rename_gym_scope(cls, owner_id: Any, old_gym_name: Any, new_gym_name: Any) -> int:
        """
        Move owner_id's conversations from old_gym_name to new_gym_name.

        Returns:
            Number of conversations moved; 0 when none matched

        Raises:
            ValidationError: Malformed id or missing names
            PersistenceError: Storage failure
        """
        owner_id = _coerce_user_id(owner_id, "owner_id")
        old_gym_name = _clean_gym_name(old_gym_name, "old_gym_name")
        new_gym_name = _clean_gym_name(new_gym_name, "new_gym_name")

        count = ConversationStore.rename_scope(owner_id, old_gym_name, new_gym_name)
        if count == 0:
            cls.get_logger().info(
                f"No conversations of user {owner_id} under gym {old_gym_name!r}"
            )
        return count
