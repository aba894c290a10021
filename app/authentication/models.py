"""
Authentication models.

This module defines the account models:
- User: Custom user model with email-based authentication and an account role
- Profile: Display data (name, city) kept apart from the auth record

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: UserDirectory identity lookup used by chat
    - signals.py: Auto-create profile on user creation

Note:
    Credential issuance and token verification happen outside this
    service; callers arrive already authenticated.
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from core.models import BaseModel


class UserRole(models.TextChoices):
    """
    Account role.

    USER: Regular member browsing gyms and chatting with owners
    GYM_OWNER: Owns gym listings and answers member chats per gym
    ADMIN: Platform administrator
    """

    USER = "user", "User"
    GYM_OWNER = "gym_owner", "Gym Owner"
    ADMIN = "admin", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Profile data (name, city) is stored in the Profile model.

    Fields:
        email: Primary identifier, unique, used for login
        role: Account role (user, gym owner, admin)
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email='owner@example.com',
            password='securepassword',
            role=UserRole.GYM_OWNER,
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.USER,
        db_index=True,
        help_text="Account role",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the user's email as string representation."""
        return self.email

    def get_full_name(self):
        """Return the full name from profile, or email if no name is set."""
        try:
            return self.profile.full_name or self.email
        except Profile.DoesNotExist:
            return self.email

    def get_short_name(self):
        """Return the first name from profile, or the email local part."""
        try:
            return self.profile.first_name or self.email.split("@")[0]
        except Profile.DoesNotExist:
            return self.email.split("@")[0]

    @property
    def is_gym_owner(self) -> bool:
        return self.role == UserRole.GYM_OWNER


class Profile(BaseModel):
    """
    Display data for a user.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        first_name: User's first name
        last_name: User's last name
        city: Home city (used by gym listings)

    Note:
        Profile is automatically created via signals when a User is created.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    first_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's first name",
    )
    last_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's last name",
    )
    city = models.CharField(
        max_length=100,
        blank=True,
        help_text="User's home city",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"

    def __str__(self):
        return self.full_name or str(self.user)

    @property
    def full_name(self):
        """Return full name or empty string."""
        return f"{self.first_name} {self.last_name}".strip()
