"""
WebSocket consumer for the chat gateway.

One connection serves every chat of a client. The client identifies itself
with a register event, then sends messages and requests over the same
socket. Requests that expect an answer carry a request_id, which is echoed
back in the matching response frame.

Consumers:
    ChatGatewayConsumer: Event dispatch, identity registry, fan-out

Frames (from client):
    {"type": "register", "request_id": "r1", "data": {"user_id": 7}}
    {"type": "send_message", "data": {"sender_id": 7, "recipient_id": 9,
                                      "gym_name": "Iron Temple", "text": "Hi"}}
    {"type": "get_history", "request_id": "r2",
     "data": {"user_a": 7, "user_b": 9, "gym_name": "Iron Temple"}}

Frames (to client):
    - message: New message for one of this connection's conversations
    - response: Answer to a request, with the echoed request_id
    - error: Malformed frame or unknown event type

Authentication:
    Optional. When JWTAuthMiddleware resolves a token to a user, the
    connection starts out registered as that user.

Failure Handling:
    No exception reaches the transport. Rejected sends are logged and
    dropped; failed reads answer with an empty result; a failed rename
    answers with success=false.
"""

from __future__ import annotations

import logging
from typing import Any

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from chat.constants import BROADCAST_GROUP, BROADCAST_MODE, GATEWAY_EVENTS
from chat.gateway import ChannelLayerBroadcaster, SessionRegistry, user_group_name
from chat.serializers import MessageSerializer
from chat.services import ConversationService
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ChatGatewayConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time gym chats.

    Handles:
        - register / unregister: bind the connection to a user id
        - send_message: store and fan out a message
        - get_history / list_partners: request/response reads
        - rename_scope: move an owner's conversations to a new gym name

    Attributes:
        registry: SessionRegistry shared by the consumers of one process.
            Routing passes one in via as_asgi(registry=...); without it
            the consumer keeps a private registry.
        broadcaster: MessageBroadcaster used for new messages
    """

    registry: SessionRegistry | None = None

    def __init__(self, *args, registry: SessionRegistry | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.registry = registry if registry is not None else SessionRegistry()
        self.broadcaster = None
        self.handlers = {
            GATEWAY_EVENTS.REGISTER: self._handle_register,
            GATEWAY_EVENTS.UNREGISTER: self._handle_unregister,
            GATEWAY_EVENTS.SEND_MESSAGE: self._handle_send_message,
            GATEWAY_EVENTS.GET_HISTORY: self._handle_get_history,
            GATEWAY_EVENTS.LIST_PARTNERS: self._handle_list_partners,
            GATEWAY_EVENTS.RENAME_SCOPE: self._handle_rename_scope,
        }

    async def connect(self):
        """Accept the connection and join the gateway-wide group."""
        mode = getattr(settings, "CHAT_BROADCAST_MODE", BROADCAST_MODE.PARTICIPANTS)
        self.broadcaster = ChannelLayerBroadcaster(self.channel_layer, mode)

        await self.channel_layer.group_add(BROADCAST_GROUP, self.channel_name)
        # Echo the jwt subprotocol when the token came that way
        subprotocol = "jwt" if "jwt" in self.scope.get("subprotocols", []) else None
        await self.accept(subprotocol)
        logger.info(f"Gateway connection opened: {self.channel_name}")

        # Token-authenticated connections start out registered
        user = self.scope.get("user")
        if user is not None and user.is_authenticated:
            await self._join_user(user.id)

    async def disconnect(self, close_code):
        """Leave all groups and drop the connection from the registry."""
        await self.channel_layer.group_discard(BROADCAST_GROUP, self.channel_name)

        user_id = self.registry.discard(self.channel_name)
        if user_id is not None:
            await self.channel_layer.group_discard(
                user_group_name(user_id), self.channel_name
            )
        logger.info(
            f"Gateway connection closed: {self.channel_name} "
            f"(user {user_id}, code {close_code})"
        )

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """
        Decode a frame and pass it on.

        Unlike the base class, a frame that is not JSON answers with an error
        frame and leaves the socket open.
        """
        if text_data is None:
            await self._send_error("Binary frames are not supported")
            return
        try:
            content = await self.decode_json(text_data)
        except ValueError:
            logger.warning(f"Malformed frame on {self.channel_name}")
            await self._send_error("Malformed JSON frame")
            return
        await self.receive_json(content)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch a decoded frame to its event handler.

        Payload fields are read from "data"; frames without "data" are read
        flat, the way the original web client sends them.
        """
        if not isinstance(content, dict):
            await self._send_error("Frame must be a JSON object")
            return

        event = content.get("type")
        event = GATEWAY_EVENTS.ALIASES.get(event, event)
        handler = self.handlers.get(event)
        if handler is None:
            await self._send_error(f"Unknown message type: {content.get('type')}")
            return

        data = content.get("data")
        if data is None:
            data = {k: v for k, v in content.items() if k not in ("type", "request_id")}
        if not isinstance(data, dict):
            await self._send_error("Frame data must be a JSON object")
            return

        await handler(data, content.get("request_id"))

    # =========================================================================
    # Event handlers
    # =========================================================================

    async def _handle_register(self, data: dict, request_id):
        user_id = _parse_user_id(data.get("user_id"))
        if user_id is None:
            logger.debug(f"Ignoring register without a valid user_id on {self.channel_name}")
            if request_id is not None:
                await self._respond(GATEWAY_EVENTS.REGISTER, request_id, {"registered": False})
            return

        await self._join_user(user_id)

        if request_id is not None:
            await self._respond(GATEWAY_EVENTS.REGISTER, request_id, {"registered": True})

    async def _handle_unregister(self, data: dict, request_id):
        user_id = _parse_user_id(data.get("user_id"))
        removed = user_id is not None and self.registry.unregister(self.channel_name, user_id)
        if removed:
            await self.channel_layer.group_discard(
                user_group_name(user_id), self.channel_name
            )
            logger.info(f"User {user_id} unregistered from {self.channel_name}")

        if request_id is not None:
            await self._respond(
                GATEWAY_EVENTS.UNREGISTER, request_id, {"unregistered": bool(removed)}
            )

    async def _handle_send_message(self, data: dict, request_id):
        sender_id = data.get("sender_id")
        recipient_id = data.get("recipient_id")

        registered = self.registry.user_for(self.channel_name)
        if registered is not None and _parse_user_id(sender_id) != registered:
            logger.warning(
                f"Dropped message: connection registered as {registered} "
                f"tried to send as {sender_id}"
            )
            return

        try:
            payload = await self._send_message(
                sender_id,
                recipient_id,
                data.get("gym_name"),
                data.get("text"),
            )
        except Exception:
            logger.exception(f"Dropped message from {sender_id}: storage failure")
            return

        if payload is None:
            return

        try:
            await self.broadcaster.publish(payload, (payload["sender"], int(recipient_id)))
            if request_id is not None:
                await self._respond(
                    GATEWAY_EVENTS.SEND_MESSAGE, request_id, {"message": payload}
                )
        except Exception:
            logger.exception(f"Fan-out failed for stored message {payload['id']}")

    async def _handle_get_history(self, data: dict, request_id):
        try:
            messages = await self._get_history(
                data.get("user_a"), data.get("user_b"), data.get("gym_name")
            )
        except ValidationError as e:
            logger.warning(f"get_history rejected: {e}")
            messages = []
        except Exception:
            logger.exception("get_history failed, answering with an empty history")
            messages = []

        await self._respond(GATEWAY_EVENTS.GET_HISTORY, request_id, {"messages": messages})

    async def _handle_list_partners(self, data: dict, request_id):
        try:
            partners = await self._list_partners(data.get("owner_id"), data.get("gym_name"))
        except ValidationError as e:
            logger.warning(f"list_partners rejected: {e}")
            partners = []
        except Exception:
            logger.exception("list_partners failed, answering with an empty list")
            partners = []

        await self._respond(GATEWAY_EVENTS.LIST_PARTNERS, request_id, partners)

    async def _handle_rename_scope(self, data: dict, request_id):
        try:
            count = await self._rename_scope(
                data.get("owner_id"),
                data.get("old_gym_name"),
                data.get("new_gym_name"),
            )
        except ValidationError as e:
            logger.warning(f"rename_scope rejected: {e}")
            result = {"success": False, "message": e.message}
        except Exception:
            logger.exception("rename_scope failed")
            result = {"success": False, "message": "Internal server error."}
        else:
            if count > 0:
                result = {"success": True, "count": count}
            else:
                result = {
                    "success": False,
                    "count": 0,
                    "message": "No chats found for this gym.",
                }

        await self._respond(GATEWAY_EVENTS.RENAME_SCOPE, request_id, result)

    # =========================================================================
    # Channel layer handlers
    # =========================================================================

    async def chat_message(self, event):
        """
        Handle chat.message events from channel layer.

        Sends the message to the WebSocket client.
        """
        await self.send_json(
            {
                "type": "message",
                "message": event["message"],
            }
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _respond(self, event: str, request_id, data: Any):
        await self.send_json(
            {
                "type": "response",
                "event": event,
                "request_id": request_id,
                "data": data,
            }
        )

    async def _send_error(self, message: str):
        await self.send_json({"type": "error", "message": message})

    async def _join_user(self, user_id: int):
        """Register this connection as user_id and join the user's group."""
        previous = self.registry.register(self.channel_name, user_id)
        if previous is not None and previous != user_id:
            await self.channel_layer.group_discard(
                user_group_name(previous), self.channel_name
            )
        await self.channel_layer.group_add(user_group_name(user_id), self.channel_name)
        logger.info(f"User {user_id} registered on {self.channel_name}")

    @database_sync_to_async
    def _send_message(self, sender_id, recipient_id, gym_name, text) -> dict | None:
        """
        Store a message via ConversationService.

        Returns the serialized message, or None when the service rejected it.
        """
        result = ConversationService.send_message(sender_id, recipient_id, gym_name, text)
        if not result.success:
            logger.warning(
                f"Dropped message from {sender_id} to {recipient_id}: "
                f"{result.error} ({result.error_code})"
            )
            return None
        return dict(MessageSerializer(result.data).data)

    @database_sync_to_async
    def _get_history(self, user_a, user_b, gym_name) -> list[dict]:
        messages = ConversationService.get_history(user_a, user_b, gym_name)
        return [dict(item) for item in MessageSerializer(messages, many=True).data]

    @database_sync_to_async
    def _list_partners(self, owner_id, gym_name) -> list[dict]:
        return ConversationService.list_partners(owner_id, gym_name)

    @database_sync_to_async
    def _rename_scope(self, owner_id, old_gym_name, new_gym_name) -> int:
        return ConversationService.rename_gym_scope(owner_id, old_gym_name, new_gym_name)


def _parse_user_id(value) -> int | None:
    """Positive int from an int or digit string; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and value > 0:
        return value
    return None
