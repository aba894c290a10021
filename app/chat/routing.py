"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - Chat gateway (one connection per client for all chats)

Note:
    gateway_registry is shared by every gateway connection served by this
    process and handed to each consumer instance through as_asgi().
"""

from django.urls import path

from chat import consumers
from chat.gateway import SessionRegistry

gateway_registry = SessionRegistry()

websocket_urlpatterns = [
    path(
        "ws/chat/",
        consumers.ChatGatewayConsumer.as_asgi(registry=gateway_registry),
    ),
]
