"""
Tests for UserDirectory identity lookups.

UserDirectory is the only way chat reads account data, so these tests
pin down what counts as a resolvable user.
"""

from authentication.models import Profile
from authentication.services import DisplayName, UserDirectory
from authentication.tests.factories import UserFactory


class TestFindDisplayName:
    """Tests for UserDirectory.find_display_name()."""

    def test_returns_profile_names_for_active_user(self, user):
        name = UserDirectory.find_display_name(user.id)

        assert name == DisplayName(first_name="Noa", last_name="Cohen")

    def test_returns_none_for_unknown_user(self, db):
        assert UserDirectory.find_display_name(999999) is None

    def test_returns_none_for_deactivated_user(self, inactive_user):
        """
        Deactivated accounts are how users get "deleted" here.

        Why it matters: chat partner lists must skip them.
        """
        assert UserDirectory.find_display_name(inactive_user.id) is None

    def test_returns_none_when_profile_is_missing(self, user):
        Profile.objects.filter(user=user).delete()

        assert UserDirectory.find_display_name(user.id) is None

    def test_reflects_current_profile_names(self, user):
        Profile.objects.filter(user=user).update(first_name="Renamed")

        assert UserDirectory.find_display_name(user.id).first_name == "Renamed"


class TestExistingUserIds:
    """Tests for UserDirectory.existing_user_ids()."""

    def test_returns_only_active_known_ids(self, user, inactive_user):
        other = UserFactory()

        result = UserDirectory.existing_user_ids([user.id, other.id, inactive_user.id, 424242])

        assert result == {user.id, other.id}

    def test_empty_input_returns_empty_set(self, db):
        assert UserDirectory.existing_user_ids([]) == set()
