"""
Chat system models.

Direct conversations between two users, partitioned by gym: the same two
people can have one conversation per gym, each with its own history.

Models:
    Conversation: Pair of participants + gym name, owner of the messages
    Message: Individual message within a conversation

Design Decisions:
    - The participant pair is stored in canonical order (lower user id first)
      so that a plain unique constraint covers the unordered pair
    - Conversations are created lazily by the first message
    - Messages are immutable; there is no edit or delete path
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from core.models import BaseModel


def canonical_pair(user_a_id: int, user_b_id: int) -> tuple[int, int]:
    """Return the two user ids with the lower one first."""
    if user_a_id < user_b_id:
        return user_a_id, user_b_id
    return user_b_id, user_a_id


class ConversationQuerySet(models.QuerySet):
    """QuerySet helpers for participant lookups."""

    def for_pair(self, user_a_id: int, user_b_id: int, gym_name: str):
        """Conversation between the two users in the given gym (order-free)."""
        lower, higher = canonical_pair(user_a_id, user_b_id)
        return self.filter(user_lower_id=lower, user_higher_id=higher, gym_name=gym_name)

    def involving(self, user_id: int):
        """Conversations the user takes part in, on either side of the pair."""
        return self.filter(Q(user_lower_id=user_id) | Q(user_higher_id=user_id))


class Conversation(BaseModel):
    """
    A conversation between two users about one gym.

    Identity:
        (user_lower, user_higher, gym_name), unique. Whoever sends first,
        both users land in the same row.

    Fields:
        user_lower: Participant with the lower user id
        user_higher: Participant with the higher user id
        gym_name: Scope label; renamed in bulk when the gym is renamed
        last_message_at: Timestamp of most recent message (for sorting)

    Relationships:
        messages: All Message records for this conversation
    """

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Participant with the lower user id",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Participant with the higher user id",
    )

    gym_name = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH,
        db_index=True,
        help_text="Gym this conversation is about",
    )

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting conversation lists)",
    )

    objects = ConversationQuerySet.as_manager()

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-created_at"]
        constraints = [
            # One conversation per user pair per gym
            models.UniqueConstraint(
                fields=["user_lower", "user_higher", "gym_name"],
                name="unique_conversation_pair_gym",
            ),
            # Canonical ordering: lower id first
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="conversation_user_lower_less_than_higher",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user_higher", "gym_name"],
                name="chat_conv_higher_gym_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation({self.user_lower_id}, {self.user_higher_id}, {self.gym_name!r})"

    @property
    def participant_ids(self) -> tuple[int, int]:
        return self.user_lower_id, self.user_higher_id

    def has_participant(self, user_id: int) -> bool:
        return user_id in self.participant_ids

    def other_participant_id(self, user_id: int) -> int | None:
        """
        Get the id of the other participant.

        Returns:
            The partner's user id, or None if user_id is not in this conversation
        """
        if user_id == self.user_lower_id:
            return self.user_higher_id
        if user_id == self.user_higher_id:
            return self.user_lower_id
        return None


class Message(BaseModel):
    """
    A message within a conversation.

    Ordering:
        Chronological by timestamp; messages with equal timestamps keep
        insertion order (primary key).

    Fields:
        conversation: Conversation this message belongs to
        sender: One of the conversation's two participants
        text: Non-empty message text
        timestamp: When the message was sent (defaults to now)
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_messages",
        help_text="User who sent this message",
    )

    text = models.TextField(
        help_text="Message text",
    )

    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the message was sent",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["timestamp", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "timestamp", "id"],
                name="chat_msg_conv_time_idx",
            ),
        ]

    def __str__(self) -> str:
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"User {self.sender_id}: {preview}"
