"""
Identity lookup for other apps.

Chat never touches User/Profile tables directly; it asks the
UserDirectory for display names and for the existence of accounts.

Usage:
    from authentication.services import UserDirectory

    name = UserDirectory.find_display_name(user_id)
    if name is not None:
        print(name.first_name, name.last_name)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from authentication.models import Profile, User
from core.services import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayName:
    """First/last name pair shown next to a chat partner."""

    first_name: str
    last_name: str


class UserDirectory(BaseService):
    """
    Read-only lookups over user accounts.

    Deactivated accounts are treated as gone: they do not resolve to a
    display name and do not count as existing participants.
    """

    @classmethod
    def find_display_name(cls, user_id: int) -> DisplayName | None:
        """
        Resolve a user's display name.

        Returns:
            DisplayName, or None when the user is unknown, deactivated,
            or has no profile.
        """
        row = (
            Profile.objects.filter(user_id=user_id, user__is_active=True)
            .values("first_name", "last_name")
            .first()
        )
        if row is None:
            return None
        return DisplayName(first_name=row["first_name"], last_name=row["last_name"])

    @classmethod
    def existing_user_ids(cls, user_ids: list[int]) -> set[int]:
        """Return the subset of user_ids that belong to active accounts."""
        return set(
            User.objects.filter(id__in=user_ids, is_active=True).values_list(
                "id", flat=True
            )
        )
