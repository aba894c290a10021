"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Conversation, Message model tests
- test_store.py: ConversationStore persistence tests
- test_services.py: ConversationService tests
- test_gateway.py: SessionRegistry and broadcaster tests
- test_consumers.py: WebSocket gateway tests
- test_views.py: REST API endpoint tests

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
