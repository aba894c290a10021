"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message content limits
- Gateway event names, aliases and channel-layer group names
- Fan-out modes

Import example:
    from chat.constants import MESSAGE_CONFIG, GATEWAY_EVENTS
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message and conversation fields."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MAX_GYM_NAME_LENGTH: Final[int] = 200


# =============================================================================
# Gateway Configuration
# =============================================================================


class GATEWAY_EVENTS:
    """Event names accepted by the WebSocket gateway."""

    REGISTER: Final[str] = "register"
    UNREGISTER: Final[str] = "unregister"
    SEND_MESSAGE: Final[str] = "send_message"
    GET_HISTORY: Final[str] = "get_history"
    LIST_PARTNERS: Final[str] = "list_partners"
    RENAME_SCOPE: Final[str] = "rename_scope"

    # Event names used by the original Socket.IO web client
    ALIASES: Final[dict[str, str]] = {
        "add_user": "register",
        "remove_user": "unregister",
        "communicate": "send_message",
        "get_users_chat": "get_history",
        "get_gym_chats": "list_partners",
        "update_gym_name": "rename_scope",
    }


class BROADCAST_MODE:
    """
    Fan-out modes for new messages.

    PARTICIPANTS: deliver to connections registered as either participant
    ALL: deliver to every connected session (legacy behaviour)
    """

    PARTICIPANTS: Final[str] = "participants"
    ALL: Final[str] = "all"


# Channel layer group every gateway connection joins
BROADCAST_GROUP: Final[str] = "chat_gateway"

# Prefix for per-user channel layer groups
USER_GROUP_PREFIX: Final[str] = "chat_user_"
