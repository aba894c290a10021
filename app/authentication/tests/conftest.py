"""
Test configuration and fixtures for authentication tests.
"""

import pytest

from authentication.models import User
from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic user with a named profile."""
    return UserFactory(first_name="Noa", last_name="Cohen")


@pytest.fixture
def inactive_user(db):
    """Create a deactivated user."""
    return UserFactory(is_active=False, first_name="Gone", last_name="User")


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com",
        password="AdminPass123!",
    )
