"""
Gym service layer.

This module provides business logic for gym listings.

Services:
    GymService: Create and update gyms; keep chat scopes in step with renames

Usage:
    from gyms.services import GymService

    result = GymService.update_gym(gym, request.user, name="Iron Temple North")
    if result.success:
        gym = result.data
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from authentication.models import UserRole
from chat.services import ConversationService
from core.services import BaseService, ServiceResult
from gyms.models import Gym

if TYPE_CHECKING:
    from authentication.models import User


class GymService(BaseService):
    """
    Service for gym listings.

    Methods:
        create_gym: Create a listing owned by the caller
        update_gym: Owner-only update; a new name is propagated to chat
    """

    UPDATABLE_FIELDS = ("name", "city", "description")

    @classmethod
    def create_gym(cls, owner: User, **fields: Any) -> ServiceResult[Gym]:
        """
        Create a gym owned by owner.

        Error codes:
            PERMISSION_DENIED: Account is not a gym owner or admin
            DUPLICATE_GYM: Owner already has a gym with this name
        """
        if owner.role not in (UserRole.GYM_OWNER, UserRole.ADMIN):
            return ServiceResult.failure(
                "Only gym owners can create gyms",
                error_code="PERMISSION_DENIED",
            )

        validation = cls.validate_required(name=fields.get("name"))
        if validation is not None:
            return validation

        if Gym.objects.filter(owner=owner, name=fields["name"]).exists():
            return ServiceResult.failure(
                "You already have a gym with this name",
                error_code="DUPLICATE_GYM",
                errors={"name": ["You already have a gym with this name"]},
            )

        data = {key: fields[key] for key in cls.UPDATABLE_FIELDS if key in fields}
        gym = Gym.objects.create(owner=owner, **data)
        cls.get_logger().info(f"User {owner.id} created gym {gym.id} ({gym.name!r})")
        return ServiceResult.success(gym)

    @classmethod
    def update_gym(cls, gym: Gym, user: User, **changes: Any) -> ServiceResult[Gym]:
        """
        Update a gym's listing details.

        A name change also renames the owner's conversations for the gym,
        in the same transaction: either both change or neither does.

        Args:
            gym: Gym to update
            user: Acting user; must own the gym
            **changes: Any of name, city, description

        Error codes:
            PERMISSION_DENIED: User does not own the gym
            VALIDATION_ERROR: Blank name
            DUPLICATE_GYM: Owner already has a gym with the new name
        """
        if gym.owner_id != user.id:
            return ServiceResult.failure(
                "Only the owner can update this gym",
                error_code="PERMISSION_DENIED",
            )

        changes = {key: value for key, value in changes.items() if key in cls.UPDATABLE_FIELDS}
        old_name = gym.name
        new_name = changes.get("name", old_name)

        if "name" in changes:
            validation = cls.validate_required(name=new_name)
            if validation is not None:
                return validation
            if (
                new_name != old_name
                and Gym.objects.filter(owner_id=gym.owner_id, name=new_name).exists()
            ):
                return ServiceResult.failure(
                    "You already have a gym with this name",
                    error_code="DUPLICATE_GYM",
                    errors={"name": ["You already have a gym with this name"]},
                )

        if not changes:
            return ServiceResult.success(gym)

        with cls.atomic():
            for key, value in changes.items():
                setattr(gym, key, value)
            gym.save(update_fields=[*changes.keys(), "updated_at"])

            if new_name != old_name:
                count = ConversationService.rename_gym_scope(gym.owner_id, old_name, new_name)
                cls.get_logger().info(
                    f"Gym {gym.id} renamed {old_name!r} -> {new_name!r}, "
                    f"{count} conversation(s) moved"
                )

        return ServiceResult.success(gym)
