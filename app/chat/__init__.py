"""
Chat app for gym conversations.

This app handles:
- Conversations between two users, scoped to a gym
- Message sending and history
- WebSocket real-time delivery
- Renaming chats when a gym is renamed

Related apps:
    - authentication: User accounts and display names
    - gyms: Gym renames propagate to chat scopes

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ConversationService

    result = ConversationService.send_message(
        sender_id=member.id,
        recipient_id=owner.id,
        gym_name="Iron Temple",
        text="Hello!",
    )
"""
