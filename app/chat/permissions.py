"""
Permission classes for chat API.

- IsGymOwnerRole: Account role is gym owner or admin

Design Decisions:
    - Participation is implicit (request.user is always one side of the
      pair), so most chat endpoints only need IsAuthenticated
    - Scope renames change what every partner sees, so they are limited
      to accounts that own gyms
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from authentication.models import UserRole

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsGymOwnerRole(permissions.BasePermission):
    """Allows access only to gym owners and admins."""

    message = "Only gym owners can rename gym chats."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.role in (UserRole.GYM_OWNER, UserRole.ADMIN)
