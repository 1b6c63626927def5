"""
Session registry (who is online, and under which display name).

WHY:
- Channels groups do not provide a way to list members.
- The chat runs in a single process, so an in-memory map is the source of truth.

Design:
- One dict: connection_id -> display name. Dict order is join order, which is
  the order clients see in the user list.
- One lock around every read and write. Callers never hold it while sending, so
  a slow socket cannot stall joins or leaves for everyone else.
- No TTL or expiry: entries live exactly as long as the socket (removed on disconnect).
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

ANONYMOUS = "Anonymous"


def normalize_display_name(name: Any) -> str:
    """
    Clean up a client-supplied name.

    Anything that is not a non-blank string becomes ``ANONYMOUS``.
    """

    if not isinstance(name, str):
        return ANONYMOUS
    name = name.strip()
    return name or ANONYMOUS


class SessionRegistry:
    """
    In-memory map of live connections to display names.

    One instance per server process (created by ``RealtimeConfig.ready``) and
    injected into consumers; nothing here is module-global.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def upsert(self, connection_id: str, name: Any) -> str:
        """
        Register or rename a connection.

        A repeated join overwrites the name in place, so the connection keeps its
        original position in ``snapshot()``. Returns the stored name.
        """
        display_name = normalize_display_name(name)
        with self._lock:
            self._sessions[connection_id] = display_name
        return display_name

    def remove(self, connection_id: str) -> Optional[str]:
        """Drop a connection. Returns the removed name, or None if it never joined."""
        with self._lock:
            return self._sessions.pop(connection_id, None)

    def lookup(self, connection_id: str) -> str:
        with self._lock:
            return self._sessions.get(connection_id, ANONYMOUS)

    def snapshot(self) -> List[str]:
        """Display names of everyone online, in join order."""
        with self._lock:
            return list(self._sessions.values())

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
