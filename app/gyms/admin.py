"""
Django admin configuration for gyms.
"""

from django.contrib import admin

from chat.services import ConversationService
from gyms.models import Gym


@admin.register(Gym)
class GymAdmin(admin.ModelAdmin):
    """Admin interface for Gym model."""

    list_display = ["id", "name", "city", "owner", "amount_of_reviews", "created_at"]
    list_filter = ["city"]
    search_fields = ["name", "city", "owner__email"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["owner"]
    ordering = ["name"]

    def save_model(self, request, obj, form, change):
        """Save the gym; a rename also moves the owner's chats (same admin transaction)."""
        old_name = form.initial.get("name")
        super().save_model(request, obj, form, change)
        if change and old_name and old_name != obj.name:
            ConversationService.rename_gym_scope(obj.owner_id, old_name, obj.name)
