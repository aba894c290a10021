"""
Live session bookkeeping and fan-out for the chat gateway.

Components:
    SessionRegistry: Which WebSocket channels are registered as which user
    MessageBroadcaster: Interface for delivering new messages to sessions
    ChannelLayerBroadcaster: MessageBroadcaster on top of the Channels layer

The registry is process-local. Cross-process delivery goes through the
channel layer (Redis in production): every connection joins
BROADCAST_GROUP, and a registered connection also joins its user's group.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from chat.constants import BROADCAST_GROUP, BROADCAST_MODE, USER_GROUP_PREFIX

logger = logging.getLogger(__name__)


def user_group_name(user_id: int) -> str:
    """Channel layer group holding every connection registered as user_id."""
    return f"{USER_GROUP_PREFIX}{user_id}"


class SessionRegistry:
    """
    Mapping between gateway connections and user ids.

    A connection is registered as at most one user; a user can be
    registered on many connections (several tabs or devices).

    Usage:
        registry = SessionRegistry()
        registry.register("specific.abc", 7)
        registry.channels_for(7)  # {"specific.abc"}
        registry.discard("specific.abc")
    """

    def __init__(self):
        self._user_by_channel: dict[str, int] = {}
        self._channels_by_user: dict[int, set[str]] = {}

    def register(self, channel_name: str, user_id: int) -> int | None:
        """
        Register channel_name as user_id.

        Returns:
            The user id the channel was previously registered as, if any
        """
        previous = self._user_by_channel.get(channel_name)
        if previous is not None and previous != user_id:
            self._detach(channel_name, previous)
        self._user_by_channel[channel_name] = user_id
        self._channels_by_user.setdefault(user_id, set()).add(channel_name)
        return previous

    def unregister(self, channel_name: str, user_id: int) -> bool:
        """
        Remove the mapping if channel_name is registered as user_id.

        Returns:
            True when a mapping was removed
        """
        if self._user_by_channel.get(channel_name) != user_id:
            return False
        del self._user_by_channel[channel_name]
        self._detach(channel_name, user_id)
        return True

    def discard(self, channel_name: str) -> int | None:
        """Forget channel_name entirely (on disconnect). Returns its user id, if any."""
        user_id = self._user_by_channel.pop(channel_name, None)
        if user_id is not None:
            self._detach(channel_name, user_id)
        return user_id

    def user_for(self, channel_name: str) -> int | None:
        return self._user_by_channel.get(channel_name)

    def channels_for(self, user_id: int) -> set[str]:
        return set(self._channels_by_user.get(user_id, ()))

    def is_online(self, user_id: int) -> bool:
        return bool(self._channels_by_user.get(user_id))

    def _detach(self, channel_name: str, user_id: int) -> None:
        channels = self._channels_by_user.get(user_id)
        if channels is None:
            return
        channels.discard(channel_name)
        if not channels:
            del self._channels_by_user[user_id]

    def __len__(self) -> int:
        return len(self._user_by_channel)


class MessageBroadcaster(Protocol):
    """Delivers a serialized message to live sessions."""

    async def publish(self, payload: dict[str, Any], participant_ids: Iterable[int]) -> None:
        ...


class ChannelLayerBroadcaster:
    """
    Fan-out through the Channels layer.

    Modes:
        participants: one group_send per participant user group
        all: a single group_send to every gateway connection
    """

    def __init__(self, channel_layer, mode: str = BROADCAST_MODE.PARTICIPANTS):
        if mode not in (BROADCAST_MODE.PARTICIPANTS, BROADCAST_MODE.ALL):
            raise ValueError(f"Unknown broadcast mode: {mode}")
        self.channel_layer = channel_layer
        self.mode = mode

    async def publish(self, payload: dict[str, Any], participant_ids: Iterable[int]) -> None:
        event = {"type": "chat.message", "message": payload}

        if self.mode == BROADCAST_MODE.ALL:
            await self.channel_layer.group_send(BROADCAST_GROUP, event)
            return

        for user_id in sorted(set(participant_ids)):
            await self.channel_layer.group_send(user_group_name(user_id), event)
