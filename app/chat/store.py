"""
Persistence layer for chat conversations and messages.

ConversationStore is the only code that writes Conversation and Message
rows. Callers pass the two participant ids in any order; the store maps
them onto the canonical (lower, higher) pair before touching the database.

Guarantees:
    - At most one conversation per (pair, gym_name). ensure_conversation and
      append_message are atomic upserts backed by the unique constraint,
      so concurrent first messages converge on the same row.
    - append_message is a single transaction: the conversation upsert and
      the message insert commit together or not at all.
    - Driver level failures surface as core.exceptions.PersistenceError.

Usage:
    from chat.store import ConversationStore

    message = ConversationStore.append_message(
        owner_id, member_id, "Iron Temple",
        sender_id=member_id,
        text="Do you have day passes?",
    )
    history = ConversationStore.get_messages(member_id, owner_id, "Iron Temple")
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Max, Q
from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from chat.exceptions import DuplicateConversationError, InvalidMessageError
from chat.models import Conversation, Message, canonical_pair
from core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def _wrap_database_errors(func):
    """Re-raise DatabaseError from the wrapped store call as PersistenceError."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.error(f"Chat storage failure in {func.__name__}: {e}")
            raise PersistenceError(
                "Chat storage is unavailable",
                details={"operation": func.__name__},
            ) from e

    return wrapper


class ConversationStore:
    """
    Conversation and message persistence.

    Methods:
        find_conversation: Look up the conversation for a pair and gym
        create_conversation: Insert a conversation, failing on duplicates
        ensure_conversation: Find-or-create (atomic upsert)
        append_message: Upsert conversation and insert a message in one transaction
        get_messages: Chronological history for a pair and gym
        list_conversations_for_user: Conversations a user has in one gym
        rename_scope: Move a user's conversations from one gym name to another
    """

    @classmethod
    @_wrap_database_errors
    def find_conversation(
        cls, user_a_id: int, user_b_id: int, gym_name: str
    ) -> Conversation | None:
        """Return the conversation for the pair and gym, or None."""
        return Conversation.objects.for_pair(user_a_id, user_b_id, gym_name).first()

    @classmethod
    @_wrap_database_errors
    def create_conversation(
        cls, user_a_id: int, user_b_id: int, gym_name: str
    ) -> Conversation:
        """
        Insert a new conversation.

        Raises:
            InvalidMessageError: Both ids are the same user
            DuplicateConversationError: The pair already has a conversation
                for this gym
        """
        lower, higher = cls._checked_pair(user_a_id, user_b_id)
        try:
            with transaction.atomic():
                return Conversation.objects.create(
                    user_lower_id=lower,
                    user_higher_id=higher,
                    gym_name=gym_name,
                )
        except IntegrityError as e:
            raise DuplicateConversationError(
                "Conversation already exists for these users and gym",
                details={"user_ids": [lower, higher], "gym_name": gym_name},
            ) from e

    @classmethod
    @_wrap_database_errors
    def ensure_conversation(
        cls, user_a_id: int, user_b_id: int, gym_name: str
    ) -> tuple[Conversation, bool]:
        """
        Find or create the conversation for the pair and gym.

        get_or_create retries the lookup when its insert loses a race on the
        unique constraint, so every caller gets the same row.

        Returns:
            (conversation, created)
        """
        lower, higher = cls._checked_pair(user_a_id, user_b_id)
        return Conversation.objects.get_or_create(
            user_lower_id=lower,
            user_higher_id=higher,
            gym_name=gym_name,
        )

    @classmethod
    @_wrap_database_errors
    def append_message(
        cls,
        user_a_id: int,
        user_b_id: int,
        gym_name: str,
        *,
        sender_id: int,
        text: str,
        timestamp: datetime | None = None,
    ) -> Message:
        """
        Append a message, creating the conversation on first use.

        Args:
            user_a_id, user_b_id: The two participants, any order
            gym_name: Conversation scope
            sender_id: Must be one of the two participants
            text: Non-empty message text
            timestamp: Send time; defaults to now

        Raises:
            InvalidMessageError: Empty/oversized text or sender outside the pair.
                Nothing is written in that case.
        """
        if not text or not text.strip():
            raise InvalidMessageError(
                "Message text cannot be empty",
                error_code="EMPTY_TEXT",
                details={"field": "text"},
            )
        if len(text) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            raise InvalidMessageError(
                f"Message text cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="TEXT_TOO_LONG",
                details={"field": "text"},
            )
        if sender_id not in (user_a_id, user_b_id):
            raise InvalidMessageError(
                "Sender is not a participant in this conversation",
                error_code="SENDER_NOT_PARTICIPANT",
                details={"field": "sender_id"},
            )

        lower, higher = cls._checked_pair(user_a_id, user_b_id)
        timestamp = timestamp or timezone.now()

        with transaction.atomic():
            conversation, created = Conversation.objects.get_or_create(
                user_lower_id=lower,
                user_higher_id=higher,
                gym_name=gym_name,
            )
            message = Message.objects.create(
                conversation=conversation,
                sender_id=sender_id,
                text=text,
                timestamp=timestamp,
            )
            # Only move last_message_at forward; back-dated messages keep it
            Conversation.objects.filter(pk=conversation.pk).filter(
                Q(last_message_at__isnull=True) | Q(last_message_at__lt=timestamp)
            ).update(last_message_at=timestamp)

        if created:
            logger.info(
                f"Created conversation {conversation.pk} for users "
                f"{lower}/{higher} in gym {gym_name!r}"
            )
        return message

    @classmethod
    @_wrap_database_errors
    def get_messages(cls, user_a_id: int, user_b_id: int, gym_name: str) -> list[Message]:
        """Messages for the pair and gym, oldest first. Empty when no conversation exists."""
        lower, higher = canonical_pair(user_a_id, user_b_id)
        return list(
            Message.objects.filter(
                conversation__user_lower_id=lower,
                conversation__user_higher_id=higher,
                conversation__gym_name=gym_name,
            )
            .select_related("conversation")
            .order_by("timestamp", "id")
        )

    @classmethod
    @_wrap_database_errors
    def list_conversations_for_user(cls, user_id: int, gym_name: str) -> list[Conversation]:
        """Conversations the user takes part in for one gym, most recent activity first."""
        return list(Conversation.objects.involving(user_id).filter(gym_name=gym_name))

    @classmethod
    @_wrap_database_errors
    def rename_scope(cls, user_id: int, old_gym_name: str, new_gym_name: str) -> int:
        """
        Move every conversation of user_id from old_gym_name to new_gym_name.

        Conversations of other users under old_gym_name are left alone. When
        the pair already has a conversation under new_gym_name, the messages
        are moved into it and the old row is deleted.

        Returns:
            Number of conversations renamed or merged
        """
        if old_gym_name == new_gym_name:
            return 0

        count = 0
        with transaction.atomic():
            conversations = list(
                Conversation.objects.involving(user_id)
                .filter(gym_name=old_gym_name)
                .select_for_update()
            )
            for conversation in conversations:
                target = (
                    Conversation.objects.filter(
                        user_lower_id=conversation.user_lower_id,
                        user_higher_id=conversation.user_higher_id,
                        gym_name=new_gym_name,
                    )
                    .select_for_update()
                    .first()
                )
                if target is None:
                    conversation.gym_name = new_gym_name
                    conversation.save(update_fields=["gym_name", "updated_at"])
                else:
                    cls._merge_into(conversation, target)
                count += 1

        if count:
            logger.info(
                f"Renamed {count} conversation(s) of user {user_id} "
                f"from {old_gym_name!r} to {new_gym_name!r}"
            )
        return count

    @staticmethod
    def _merge_into(source: Conversation, target: Conversation) -> None:
        """Move all messages from source into target, then delete source."""
        Message.objects.filter(conversation=source).update(conversation=target)
        latest = target.messages.aggregate(latest=Max("timestamp"))["latest"]
        Conversation.objects.filter(pk=target.pk).update(last_message_at=latest)
        logger.debug(f"Merging conversation {source.pk} into {target.pk}")
        source.delete()

    @staticmethod
    def _checked_pair(user_a_id: int, user_b_id: int) -> tuple[int, int]:
        if user_a_id == user_b_id:
            raise InvalidMessageError(
                "A conversation needs two different users",
                error_code="SAME_USER",
                details={"field": "recipient_id"},
            )
        return canonical_pair(user_a_id, user_b_id)
