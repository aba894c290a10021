"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation browsing (per pair and gym)
- Message moderation
"""

from django.contrib import admin

from chat.models import Conversation, Message


class MessageInline(admin.TabularInline):
    """Inline display of messages in conversation admin."""

    model = Message
    extra = 0
    fields = ["sender", "text", "timestamp"]
    readonly_fields = ["sender", "text", "timestamp"]
    ordering = ["timestamp", "id"]
    can_delete = False


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "gym_name",
        "user_lower",
        "user_higher",
        "last_message_at",
        "created_at",
    ]
    list_filter = ["created_at"]
    search_fields = ["gym_name", "user_lower__email", "user_higher__email"]
    readonly_fields = ["created_at", "updated_at", "last_message_at"]
    raw_id_fields = ["user_lower", "user_higher"]
    inlines = [MessageInline]
    ordering = ["-last_message_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "text_preview",
        "timestamp",
    ]
    list_filter = ["timestamp"]
    search_fields = ["text", "sender__email", "conversation__gym_name"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["conversation", "sender"]
    ordering = ["-timestamp"]

    @admin.display(description="Text Preview")
    def text_preview(self, obj: Message) -> str:
        """Return truncated text for list display."""
        max_length = 50
        if len(obj.text) > max_length:
            return obj.text[:max_length] + "..."
        return obj.text
