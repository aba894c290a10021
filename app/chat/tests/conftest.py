"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures for a gym owner and the members who write to them
- Conversation fixtures scoped to a gym
- API client helpers for authenticated requests

Usage:
    def test_example(owner_client, member, gym_name):
        response = owner_client.get(
            "/api/v1/chat/messages/", {"user_id": member.id, "gym_name": gym_name}
        )
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import GymOwnerFactory, UserFactory
from chat.tests.factories import ConversationFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def gym_name():
    """Name of the gym most tests chat about."""
    return "Iron Temple"


@pytest.fixture
def owner(db):
    """Create a gym owner."""
    return GymOwnerFactory(first_name="Dana", last_name="Levi")


@pytest.fixture
def member(db):
    """Create a member who writes to the owner."""
    return UserFactory(first_name="Noa", last_name="Cohen")


@pytest.fixture
def other_member(db):
    """Create a second member."""
    return UserFactory(first_name="Avi", last_name="Katz")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def conversation(db, owner, member, gym_name):
    """Conversation between owner and member about gym_name."""
    return ConversationFactory(user_lower=owner, user_higher=member, gym_name=gym_name)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def owner_client(owner):
    """API client authenticated as the gym owner."""
    client = APIClient()
    client.force_authenticate(user=owner)
    return client


@pytest.fixture
def member_client(member):
    """API client authenticated as the member."""
    client = APIClient()
    client.force_authenticate(user=member)
    return client
