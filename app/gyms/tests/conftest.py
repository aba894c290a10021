"""
Test configuration and fixtures for gym tests.
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import GymOwnerFactory, UserFactory
from gyms.tests.factories import GymFactory


@pytest.fixture
def gym_owner(db):
    """Create a gym owner."""
    return GymOwnerFactory(first_name="Dana", last_name="Levi")


@pytest.fixture
def member(db):
    """Create a regular member."""
    return UserFactory(first_name="Noa", last_name="Cohen")


@pytest.fixture
def gym(gym_owner):
    """Gym owned by gym_owner."""
    return GymFactory(owner=gym_owner, name="Iron Temple", city="Haifa")


@pytest.fixture
def owner_client(gym_owner):
    """API client authenticated as the gym owner."""
    client = APIClient()
    client.force_authenticate(user=gym_owner)
    return client


@pytest.fixture
def member_client(member):
    """API client authenticated as a regular member."""
    client = APIClient()
    client.force_authenticate(user=member)
    return client
