"""
Django signals for authentication.

Every account gets a Profile on creation, so chat can resolve a display
name for any user. UserManager.create_user fills the names in afterwards.
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """Create an empty Profile for a newly created user."""
    if not created:
        return

    from authentication.models import Profile

    _, profile_created = Profile.objects.get_or_create(user=instance)
    if profile_created:
        logger.debug(f"Profile created for user {instance.pk}")
