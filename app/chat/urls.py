"""
URL configuration for chat API.

URL Structure:
    /messages/        GET (history), POST (send)
    /partners/        GET
    /rename-scope/    POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
The WebSocket gateway is routed separately in chat/routing.py.
"""

from django.urls import path

from chat.views import ConversationMessagesView, PartnersView, RenameScopeView

app_name = "chat"

urlpatterns = [
    path("messages/", ConversationMessagesView.as_view(), name="messages"),
    path("partners/", PartnersView.as_view(), name="partners"),
    path("rename-scope/", RenameScopeView.as_view(), name="rename-scope"),
]
