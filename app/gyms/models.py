"""
Gym directory models.

Models:
    Gym: A gym listing owned by a gym owner account

Note:
    Chat conversations reference gyms by name, not by foreign key.
    Renaming a gym goes through GymService.update_gym so the owner's
    chats follow the new name.
"""

from django.conf import settings
from django.db import models

from chat.constants import MESSAGE_CONFIG
from core.models import BaseModel


class Gym(BaseModel):
    """
    A gym listing.

    Fields:
        name: Display name, unique per owner (chat scope key)
        city: City the gym is in
        description: Free text shown on the listing
        owner: Account that manages the listing and answers its chats
        amount_of_reviews: Review count shown on the listing. Read-only through
            the API and GymService; set by imports or the admin, since reviews
            themselves are kept outside this service
    """

    name = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_GYM_NAME_LENGTH,
        help_text="Gym name",
    )
    city = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text="City the gym is in",
    )
    description = models.TextField(
        blank=True,
        help_text="Listing description",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="gyms",
        help_text="Owner of this gym",
    )
    amount_of_reviews = models.PositiveIntegerField(
        default=0,
        help_text="Number of reviews",
    )

    class Meta:
        db_table = "gyms_gym"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "name"],
                name="unique_gym_name_per_owner",
            ),
        ]

    def __str__(self):
        return self.name
