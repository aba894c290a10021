"""
Chat-specific exceptions.

Exception Hierarchy:
    ChatError (base for chat domain, a BaseApplicationError)
    InvalidMessageError - Empty text or sender outside the conversation (ValidationError)
    DuplicateConversationError - Pair + gym already has a conversation (ConflictError)

Storage failures are raised as core.exceptions.PersistenceError.

Usage:
    from chat.exceptions import InvalidMessageError

    raise InvalidMessageError(
        "Message text cannot be empty",
        error_code="EMPTY_TEXT",
        details={"field": "text"},
    )
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, ConflictError, ValidationError


class ChatError(BaseApplicationError):
    """Base exception for chat operations."""

    default_error_code: str = "CHAT_ERROR"


class InvalidMessageError(ChatError, ValidationError):
    """
    Raised when a message cannot be stored.

    Use for:
    - Empty or whitespace-only text
    - Text over MESSAGE_CONFIG.MAX_CONTENT_LENGTH
    - Sender that is not one of the two participants
    """

    default_error_code: str = "INVALID_MESSAGE"


class DuplicateConversationError(ChatError, ConflictError):
    """
    Raised by ConversationStore.create_conversation when the pair already
    has a conversation for that gym.

    ensure_conversation and append_message resolve this race internally
    and never raise it.
    """

    default_error_code: str = "DUPLICATE_CONVERSATION"
