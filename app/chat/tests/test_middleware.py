"""
Tests for JWTAuthMiddleware on gateway connections.

Covers:
- Token from query string and from the jwt subprotocol
- Invalid, unknown-user and inactive-user tokens
- Token-authenticated connections start out registered
"""

import pytest
from channels.db import database_sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory
from chat.consumers import ChatGatewayConsumer
from chat.gateway import SessionRegistry
from chat.middleware import JWTAuthMiddleware

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]


def make_app(registry):
    return JWTAuthMiddleware(ChatGatewayConsumer.as_asgi(registry=registry))


async def settle(communicator):
    """Round-trip one frame so connect() has finished."""
    await communicator.send_json_to({"type": "ping"})
    response = await communicator.receive_json_from()
    assert response["type"] == "error"


class TestTokenResolution:
    """Tests for resolving tokens to users."""

    async def test_query_string_token_registers_connection(self, member):
        registry = SessionRegistry()
        token = str(AccessToken.for_user(member))
        communicator = WebsocketCommunicator(make_app(registry), f"/ws/chat/?token={token}")

        connected, _ = await communicator.connect()
        assert connected
        await settle(communicator)

        assert registry.is_online(member.id)
        await communicator.disconnect()

    async def test_subprotocol_token_registers_connection(self, member):
        registry = SessionRegistry()
        token = str(AccessToken.for_user(member))
        communicator = WebsocketCommunicator(
            make_app(registry), "/ws/chat/", subprotocols=["jwt", token]
        )

        connected, _ = await communicator.connect()
        assert connected
        await settle(communicator)

        assert registry.is_online(member.id)
        await communicator.disconnect()

    async def test_no_token_stays_anonymous(self):
        registry = SessionRegistry()
        communicator = WebsocketCommunicator(make_app(registry), "/ws/chat/")

        connected, _ = await communicator.connect()
        assert connected
        await settle(communicator)

        assert len(registry) == 0
        await communicator.disconnect()

    async def test_invalid_token_stays_anonymous(self):
        """
        Why it matters: A bad token must not close the socket; the client
        can still identify itself with register.
        """
        registry = SessionRegistry()
        communicator = WebsocketCommunicator(make_app(registry), "/ws/chat/?token=garbage")

        connected, _ = await communicator.connect()
        assert connected
        await settle(communicator)

        assert len(registry) == 0
        await communicator.disconnect()


class TestGetUserFromToken:
    """Tests for JWTAuthMiddleware._get_user_from_token()."""

    async def test_inactive_user_is_anonymous(self):
        user = await database_sync_to_async(UserFactory)(is_active=False)
        token = str(AccessToken.for_user(user))

        resolved = await JWTAuthMiddleware(None)._get_user_from_token(token)

        assert isinstance(resolved, AnonymousUser)

    async def test_deleted_user_is_anonymous(self):
        user = await database_sync_to_async(UserFactory)()
        token = str(AccessToken.for_user(user))
        await database_sync_to_async(user.delete)()

        resolved = await JWTAuthMiddleware(None)._get_user_from_token(token)

        assert isinstance(resolved, AnonymousUser)

    async def test_valid_token_resolves_user(self, member):
        token = str(AccessToken.for_user(member))

        resolved = await JWTAuthMiddleware(None)._get_user_from_token(token)

        assert resolved.id == member.id
