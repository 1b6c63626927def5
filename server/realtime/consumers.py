"""
WebSocket consumer for the chat lobby.

Key behavior:
- URL: /ws/chat/
- Every socket joins one Channels group (CHAT_GROUP_NAME); broadcasts go to the
  whole group, sender included.
- Frames are JSON objects: {"event": <name>, "data": <payload>}.
- BroadcastRelay decides what to broadcast; this class only parses frames and fans out.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Iterable, Optional

from channels.generic.websocket import AsyncWebsocketConsumer
from django.apps import apps
from pydantic import ValidationError

from nimbus_chat.applib.config import config
from nimbus_chat.applib.models.api import ConnectedEvent, ErrorEvent, InboundFrame

from .relay import Broadcast, BroadcastRelay

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncWebsocketConsumer):
    """
    Transport adapter between one socket and the shared BroadcastRelay.

    Notes:
    - `relay` can be injected through `ChatConsumer.as_asgi(relay=...)`; otherwise
      the process-wide relay owned by the realtime app is used.
    - Registry state is per process, so run a single worker process.
    """

    def __init__(self, *args: Any, relay: Optional[BroadcastRelay] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.relay: BroadcastRelay = relay or apps.get_app_config("realtime").relay
        self.connection_id: str = uuid.uuid4().hex  # server-assigned per-connection id
        self.group_name: str = config.CHAT_GROUP_NAME
        self._disconnected: bool = False

    async def connect(self) -> None:
        await self.accept()
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        logger.info("Socket connected: %s", self.connection_id)

        await self._broadcast(self.relay.on_connect(self.connection_id))
        # Only this socket learns its id; nothing is announced until it joins.
        await self.send_json(ConnectedEvent(data={"connectionId": self.connection_id}).model_dump())

    async def disconnect(self, close_code: int) -> None:
        if self._disconnected:
            return
        self._disconnected = True
        await self.channel_layer.group_discard(self.group_name, self.channel_name)
        await self._broadcast(self.relay.on_disconnect(self.connection_id))

    async def receive(self, text_data: Optional[str] = None, bytes_data: Optional[bytes] = None) -> None:
        if self._disconnected or text_data is None:
            return

        try:
            frame = InboundFrame.model_validate(json.loads(text_data))
        except (json.JSONDecodeError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow
            logger.warning("Invalid JSON from %s", self.connection_id)
            await self.send_json(ErrorEvent.from_message("Invalid JSON").model_dump())
            return
        except ValidationError as e:
            logger.warning("Malformed frame from %s: %s", self.connection_id, e.errors())
            await self.send_json(ErrorEvent.from_message("Frame must be an object with an 'event' field").model_dump())
            return

        await self._broadcast(self.relay.dispatch(frame.event, self.connection_id, frame.data))

    async def _broadcast(self, events: Iterable[Broadcast]) -> None:
        # Fire-and-forget: group_send enqueues per recipient and does not wait for delivery.
        for event in events:
            await self.channel_layer.group_send(
                self.group_name,
                {"type": "chat.broadcast", "payload": event.model_dump()},
            )

    async def chat_broadcast(self, event: Dict[str, Any]) -> None:
        """
        Handler for group broadcasts.
        """
        await self.send_json(event["payload"])

    async def send_json(self, payload: Dict[str, Any]) -> None:
        # ASCII escapes keep lone surrogates from clients encodable as UTF-8 frames.
        await self.send(text_data=json.dumps(payload, separators=(",", ":")))
