"""
Chat application configuration.

This app provides gym chats with:
- One conversation per user pair per gym
- A WebSocket gateway for live delivery
- REST endpoints for history, sending and partner lists
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
