"""
Tests for chat model constraints and helpers.

This module tests the chat models:
- Conversation: Uniqueness per pair and gym, canonical ordering, participant helpers
- Message: Chronological ordering, string representation

Test Organization:
    - Each model has its own test class
    - Tests use descriptive names following: test_<scenario>_<expected_outcome>
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from authentication.tests.factories import UserFactory
from chat.models import Conversation, Message, canonical_pair
from chat.tests.factories import ConversationFactory, MessageFactory


# =============================================================================
# TestCanonicalPair
# =============================================================================


class TestCanonicalPair:
    """Tests for canonical_pair()."""

    def test_orders_lower_id_first(self):
        assert canonical_pair(9, 4) == (4, 9)
        assert canonical_pair(4, 9) == (4, 9)


# =============================================================================
# TestConversation
# =============================================================================


class TestConversation:
    """
    Tests for Conversation model.

    Verifies:
    - One conversation per pair per gym (database enforced)
    - Canonical order check constraint
    - Participant helpers and queryset lookups
    """

    def test_duplicate_pair_and_gym_rejected(self, db, conversation):
        """
        A second row for the same pair and gym violates the unique constraint.

        Why it matters: The store relies on this constraint to make
        find-or-create race-safe.
        """
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Conversation.objects.create(
                    user_lower_id=conversation.user_lower_id,
                    user_higher_id=conversation.user_higher_id,
                    gym_name=conversation.gym_name,
                )

    def test_same_pair_in_another_gym_allowed(self, db, conversation):
        """Each gym gets its own conversation for the same two users."""
        other = Conversation.objects.create(
            user_lower_id=conversation.user_lower_id,
            user_higher_id=conversation.user_higher_id,
            gym_name="Pulse Fitness",
        )

        assert other.pk != conversation.pk

    def test_non_canonical_order_rejected(self, db):
        """
        Storing the higher id in user_lower violates the check constraint.

        Why it matters: Without canonical order, (a, b) and (b, a) would be
        two distinct rows and the unique constraint would not hold.
        """
        first = UserFactory()
        second = UserFactory()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Conversation.objects.create(
                    user_lower=second,
                    user_higher=first,
                    gym_name="Iron Temple",
                )

    def test_factory_canonicalizes_order(self, db):
        """ConversationFactory accepts users in either order."""
        first = UserFactory()
        second = UserFactory()

        conversation = ConversationFactory(user_lower=second, user_higher=first)

        assert conversation.user_lower_id == first.id
        assert conversation.user_higher_id == second.id

    def test_participant_helpers(self, db, conversation, owner, member, other_member):
        assert conversation.has_participant(owner.id)
        assert conversation.has_participant(member.id)
        assert not conversation.has_participant(other_member.id)
        assert conversation.other_participant_id(owner.id) == member.id
        assert conversation.other_participant_id(member.id) == owner.id
        assert conversation.other_participant_id(other_member.id) is None

    def test_for_pair_is_order_independent(self, db, conversation, owner, member, gym_name):
        assert Conversation.objects.for_pair(owner.id, member.id, gym_name).get() == conversation
        assert Conversation.objects.for_pair(member.id, owner.id, gym_name).get() == conversation

    def test_involving_matches_either_side(self, db, conversation, owner, member, other_member):
        assert list(Conversation.objects.involving(owner.id)) == [conversation]
        assert list(Conversation.objects.involving(member.id)) == [conversation]
        assert not Conversation.objects.involving(other_member.id).exists()

    def test_str_includes_pair_and_gym(self, db, conversation):
        assert "Iron Temple" in str(conversation)


# =============================================================================
# TestMessage
# =============================================================================


class TestMessage:
    """
    Tests for Message model.

    Verifies:
    - Default ordering is chronological, insertion order breaking ties
    - Default timestamp
    """

    def test_default_ordering_is_chronological(self, db, conversation, member):
        now = timezone.now()
        late = MessageFactory(conversation=conversation, sender=member, timestamp=now)
        early = MessageFactory(
            conversation=conversation, sender=member, timestamp=now - timedelta(minutes=5)
        )

        assert list(conversation.messages.all()) == [early, late]

    def test_equal_timestamps_keep_insertion_order(self, db, conversation, member):
        now = timezone.now()
        first = MessageFactory(conversation=conversation, sender=member, timestamp=now)
        second = MessageFactory(conversation=conversation, sender=member, timestamp=now)

        assert list(Message.objects.filter(conversation=conversation)) == [first, second]

    def test_timestamp_defaults_to_now(self, db, conversation, member):
        before = timezone.now()
        message = MessageFactory(conversation=conversation, sender=member)

        assert before <= message.timestamp <= timezone.now()

    def test_str_truncates_long_text(self, db, conversation, member):
        message = MessageFactory(conversation=conversation, sender=member, text="x" * 80)

        assert str(message) == f"User {member.id}: {'x' * 50}..."
