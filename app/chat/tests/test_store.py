"""
Tests for ConversationStore.

Covers:
- find/create/ensure with order-independent pairs
- Atomic append (upsert + insert) and validation without side effects
- Chronological retrieval
- Scope rename, including the merge into an existing conversation
- DatabaseError translation to PersistenceError
"""

from datetime import timedelta
from unittest import mock

import pytest
from django.db import OperationalError
from django.db.models.query import QuerySet
from django.utils import timezone

from chat.exceptions import DuplicateConversationError, InvalidMessageError
from chat.models import Conversation, Message
from chat.store import ConversationStore
from chat.tests.factories import ConversationFactory, MessageFactory
from core.exceptions import PersistenceError, ValidationError


# =============================================================================
# Find / Create / Ensure
# =============================================================================


class TestFindConversation:
    """Tests for ConversationStore.find_conversation()."""

    def test_finds_in_either_order(self, db, conversation, owner, member, gym_name):
        assert ConversationStore.find_conversation(owner.id, member.id, gym_name) == conversation
        assert ConversationStore.find_conversation(member.id, owner.id, gym_name) == conversation

    def test_returns_none_for_other_gym(self, db, conversation, owner, member):
        assert ConversationStore.find_conversation(owner.id, member.id, "Pulse") is None


class TestCreateConversation:
    """Tests for ConversationStore.create_conversation()."""

    def test_creates_in_canonical_order(self, db, owner, member, gym_name):
        conversation = ConversationStore.create_conversation(member.id, owner.id, gym_name)

        assert conversation.user_lower_id == min(owner.id, member.id)
        assert conversation.user_higher_id == max(owner.id, member.id)

    def test_duplicate_raises_conflict(self, db, conversation, owner, member, gym_name):
        """
        Explicit create on an existing pair and gym fails.

        Why it matters: Callers that want idempotency must use
        ensure_conversation; create_conversation reports the conflict.
        """
        with pytest.raises(DuplicateConversationError) as exc_info:
            ConversationStore.create_conversation(member.id, owner.id, gym_name)

        assert exc_info.value.error_code == "DUPLICATE_CONVERSATION"
        assert Conversation.objects.count() == 1

    def test_same_user_rejected(self, db, owner, gym_name):
        with pytest.raises(InvalidMessageError):
            ConversationStore.create_conversation(owner.id, owner.id, gym_name)


class TestEnsureConversation:
    """Tests for ConversationStore.ensure_conversation()."""

    def test_creates_then_reuses(self, db, owner, member, gym_name):
        first, created_first = ConversationStore.ensure_conversation(owner.id, member.id, gym_name)
        second, created_second = ConversationStore.ensure_conversation(
            member.id, owner.id, gym_name
        )

        assert created_first is True
        assert created_second is False
        assert first.pk == second.pk
        assert Conversation.objects.count() == 1

    def test_lost_race_resolves_to_existing_row(self, db, conversation, owner, member, gym_name):
        """
        The lookup misses (another writer has not committed yet), the insert
        then hits the unique constraint, and the store returns the winner.

        Why it matters: Two first messages sent at the same moment must end
        up in the same conversation.
        """
        original_get = QuerySet.get
        calls = {"count": 0}

        def get_missing_once(self, *args, **kwargs):
            if self.model is Conversation and calls["count"] == 0:
                calls["count"] += 1
                raise Conversation.DoesNotExist
            return original_get(self, *args, **kwargs)

        with mock.patch.object(QuerySet, "get", get_missing_once):
            result, created = ConversationStore.ensure_conversation(
                member.id, owner.id, gym_name
            )

        assert calls["count"] == 1
        assert created is False
        assert result.pk == conversation.pk
        assert Conversation.objects.count() == 1


# =============================================================================
# Append
# =============================================================================


class TestAppendMessage:
    """Tests for ConversationStore.append_message()."""

    def test_first_message_creates_conversation(self, db, owner, member, gym_name):
        message = ConversationStore.append_message(
            member.id, owner.id, gym_name, sender_id=member.id, text="Day passes?"
        )

        conversation = Conversation.objects.get()
        assert message.conversation_id == conversation.pk
        assert message.sender_id == member.id
        assert conversation.last_message_at == message.timestamp

    def test_messages_from_both_sides_share_one_conversation(self, db, owner, member, gym_name):
        ConversationStore.append_message(
            member.id, owner.id, gym_name, sender_id=member.id, text="Hi"
        )
        ConversationStore.append_message(
            owner.id, member.id, gym_name, sender_id=owner.id, text="Hello"
        )

        assert Conversation.objects.count() == 1
        assert Message.objects.count() == 2

    def test_uses_given_timestamp(self, db, owner, member, gym_name):
        sent_at = timezone.now() - timedelta(hours=2)

        message = ConversationStore.append_message(
            member.id, owner.id, gym_name, sender_id=member.id, text="Hi", timestamp=sent_at
        )

        assert message.timestamp == sent_at

    def test_backdated_message_keeps_last_message_at(self, db, owner, member, gym_name):
        now = timezone.now()
        ConversationStore.append_message(
            member.id, owner.id, gym_name, sender_id=member.id, text="new", timestamp=now
        )
        ConversationStore.append_message(
            member.id,
            owner.id,
            gym_name,
            sender_id=owner.id,
            text="old",
            timestamp=now - timedelta(days=1),
        )

        assert Conversation.objects.get().last_message_at == now

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_text_rejected_without_side_effects(self, db, owner, member, gym_name, text):
        """
        Blank text is refused before anything is written.

        Why it matters: A rejected first message must not leave an empty
        conversation behind.
        """
        with pytest.raises(InvalidMessageError) as exc_info:
            ConversationStore.append_message(
                member.id, owner.id, gym_name, sender_id=member.id, text=text
            )

        assert exc_info.value.error_code == "EMPTY_TEXT"
        assert isinstance(exc_info.value, ValidationError)
        assert not Conversation.objects.exists()
        assert not Message.objects.exists()

    def test_sender_outside_pair_rejected(self, db, owner, member, other_member, gym_name):
        with pytest.raises(InvalidMessageError) as exc_info:
            ConversationStore.append_message(
                member.id, owner.id, gym_name, sender_id=other_member.id, text="Hi"
            )

        assert exc_info.value.error_code == "SENDER_NOT_PARTICIPANT"
        assert not Conversation.objects.exists()

    def test_text_too_long_rejected(self, db, owner, member, gym_name):
        with pytest.raises(InvalidMessageError) as exc_info:
            ConversationStore.append_message(
                member.id, owner.id, gym_name, sender_id=member.id, text="x" * 10001
            )

        assert exc_info.value.error_code == "TEXT_TOO_LONG"

    def test_failed_insert_rolls_back_conversation(self, db, owner, member, gym_name):
        """
        If the message insert fails, the conversation upsert is rolled back.

        Why it matters: Append is one transaction; no half-written state.
        """
        with mock.patch.object(
            Message.objects, "create", side_effect=OperationalError("disk full")
        ):
            with pytest.raises(PersistenceError):
                ConversationStore.append_message(
                    member.id, owner.id, gym_name, sender_id=member.id, text="Hi"
                )

        assert not Conversation.objects.exists()


# =============================================================================
# Retrieval
# =============================================================================


class TestGetMessages:
    """Tests for ConversationStore.get_messages()."""

    def test_returns_chronological_order(self, db, conversation, owner, member, gym_name):
        now = timezone.now()
        third = MessageFactory(conversation=conversation, sender=owner, timestamp=now)
        first = MessageFactory(
            conversation=conversation, sender=member, timestamp=now - timedelta(minutes=2)
        )
        second = MessageFactory(
            conversation=conversation, sender=owner, timestamp=now - timedelta(minutes=1)
        )

        assert ConversationStore.get_messages(member.id, owner.id, gym_name) == [
            first,
            second,
            third,
        ]

    def test_absent_conversation_returns_empty_list(self, db, owner, member):
        assert ConversationStore.get_messages(owner.id, member.id, "Nowhere Gym") == []

    def test_other_gym_messages_excluded(self, db, conversation, owner, member, gym_name):
        other = ConversationFactory(user_lower=owner, user_higher=member, gym_name="Pulse")
        MessageFactory(conversation=other, sender=owner)
        mine = MessageFactory(conversation=conversation, sender=owner)

        assert ConversationStore.get_messages(owner.id, member.id, gym_name) == [mine]


class TestListConversationsForUser:
    """Tests for ConversationStore.list_conversations_for_user()."""

    def test_lists_only_user_conversations_in_gym(
        self, db, conversation, owner, member, other_member, gym_name
    ):
        second = ConversationFactory(
            user_lower=owner, user_higher=other_member, gym_name=gym_name
        )
        ConversationFactory(user_lower=owner, user_higher=member, gym_name="Pulse")
        ConversationFactory(gym_name=gym_name)

        result = ConversationStore.list_conversations_for_user(owner.id, gym_name)

        assert {c.pk for c in result} == {conversation.pk, second.pk}


# =============================================================================
# Rename
# =============================================================================


class TestRenameScope:
    """Tests for ConversationStore.rename_scope()."""

    def test_renames_only_users_conversations(
        self, db, conversation, owner, member, other_member, gym_name
    ):
        """
        Other owners' chats under the same gym name are left alone.

        Why it matters: Two gyms can share a name; renaming one must not
        move the other's conversations.
        """
        unrelated = ConversationFactory(user_lower=member, user_higher=other_member, gym_name=gym_name)

        count = ConversationStore.rename_scope(owner.id, gym_name, "Iron Temple North")

        conversation.refresh_from_db()
        unrelated.refresh_from_db()
        assert count == 1
        assert conversation.gym_name == "Iron Temple North"
        assert unrelated.gym_name == gym_name

    def test_no_match_returns_zero(self, db, owner):
        assert ConversationStore.rename_scope(owner.id, "Unknown", "Renamed") == 0

    def test_same_name_returns_zero(self, db, conversation, owner, gym_name):
        assert ConversationStore.rename_scope(owner.id, gym_name, gym_name) == 0

    def test_history_follows_rename(self, db, conversation, owner, member, gym_name):
        message = MessageFactory(conversation=conversation, sender=member)

        ConversationStore.rename_scope(owner.id, gym_name, "Renamed")

        assert ConversationStore.get_messages(owner.id, member.id, "Renamed") == [message]
        assert ConversationStore.get_messages(owner.id, member.id, gym_name) == []

    def test_collision_merges_into_existing(self, db, conversation, owner, member, gym_name):
        """
        Renaming onto a name where the pair already talks merges the two.

        Why it matters: The pair must still have exactly one conversation
        per gym name after the rename.
        """
        now = timezone.now()
        target = ConversationFactory(user_lower=owner, user_higher=member, gym_name="Renamed")
        old_message = MessageFactory(
            conversation=conversation, sender=member, timestamp=now - timedelta(hours=1)
        )
        new_message = MessageFactory(conversation=target, sender=owner, timestamp=now)

        count = ConversationStore.rename_scope(owner.id, gym_name, "Renamed")

        assert count == 1
        assert not Conversation.objects.filter(pk=conversation.pk).exists()
        assert Conversation.objects.filter(gym_name="Renamed").count() == 1
        assert ConversationStore.get_messages(member.id, owner.id, "Renamed") == [
            old_message,
            new_message,
        ]
        target.refresh_from_db()
        assert target.last_message_at == now


# =============================================================================
# Persistence failures
# =============================================================================


class TestPersistenceErrors:
    """DatabaseError from the ORM surfaces as PersistenceError."""

    def test_read_failure_wrapped(self, db, owner, member, gym_name):
        with mock.patch.object(
            Message.objects, "filter", side_effect=OperationalError("connection lost")
        ):
            with pytest.raises(PersistenceError) as exc_info:
                ConversationStore.get_messages(owner.id, member.id, gym_name)

        assert exc_info.value.error_code == "PERSISTENCE_ERROR"
        assert exc_info.value.details == {"operation": "get_messages"}
