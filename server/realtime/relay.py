"""
Chat event handlers.

Each handler updates the SessionRegistry and returns the events to broadcast, in
the order clients must receive them. Handlers never touch sockets or the channel
layer; ChatConsumer does the fan-out. This keeps them testable without a transport.

Per-connection lifecycle:
- connected (not joined): no registry entry; may send `join` or `message`.
- joined: has a registry entry; `message` is credited to the joined name.
- disconnected: entry removed; the consumer stops dispatching for this id.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Union

from nimbus_chat.applib.helpers import new_message_id, now_ms
from nimbus_chat.applib.models.api import (
    ChatMessage,
    MessageEvent,
    SystemMessageEvent,
    SystemNotice,
    UserListEvent,
)
from nimbus_chat.applib.types import ClientEvent

from .registry import SessionRegistry

logger = logging.getLogger(__name__)

Broadcast = Union[UserListEvent, SystemMessageEvent, MessageEvent]
Handler = Callable[[str, Any], List[Broadcast]]


class BroadcastRelay:
    """Translates per-connection events into registry updates plus broadcasts."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry
        self.handlers: Dict[str, Handler] = {
            ClientEvent.JOIN.value: self.on_join,
            ClientEvent.MESSAGE.value: self.on_message,
        }

    def dispatch(self, event: str, connection_id: str, data: Any = None) -> List[Broadcast]:
        """Route a client event to its handler. Unknown events broadcast nothing."""
        handler = self.handlers.get(event)
        if handler is None:
            logger.warning("Ignoring unknown event %r from %s", event, connection_id)
            return []
        return handler(connection_id, data)

    def on_connect(self, connection_id: str) -> List[Broadcast]:
        return []

    def on_join(self, connection_id: str, name: Any) -> List[Broadcast]:
        display_name = self.registry.upsert(connection_id, name)
        logger.info("%s joined (%s)", display_name, connection_id)
        # userList first: clients render the list before the notice
        return [
            UserListEvent(data=self.registry.snapshot()),
            self._notice(f"{display_name} joined the chat."),
        ]

    def on_message(self, connection_id: str, text: Any) -> List[Broadcast]:
        # Allowed before join; the sender then resolves to "Anonymous".
        sender = self.registry.lookup(connection_id)
        timestamp = now_ms()
        message = ChatMessage(id=new_message_id(timestamp), text=text, sender=sender, time=timestamp)
        return [MessageEvent(data=message)]

    def on_disconnect(self, connection_id: str) -> List[Broadcast]:
        name = self.registry.remove(connection_id)
        logger.info("%s disconnected", name or connection_id)
        if name is None:
            return []
        return [
            UserListEvent(data=self.registry.snapshot()),
            self._notice(f"{name} left the chat."),
        ]

    @staticmethod
    def _notice(text: str) -> SystemMessageEvent:
        return SystemMessageEvent(data=SystemNotice(text=text, time=now_ms()))
