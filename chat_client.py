"""
CLI client for the Nimbus Chat relay.

Supports:
- WebSocket chat:        /ws/chat/
- HTTP liveness probe:   GET /

WebSocket protocol (`ChatConsumer`):
- Connect: /ws/chat/
- Client sends:
  {"event": "join", "data": "<display name>"}
  {"event": "message", "data": "<text>"}
- Server sends:
  - {"event":"connected","data":{"connectionId":...}}       (this socket only)
  - {"event":"userList","data":["Alice","Bob"]}
  - {"event":"systemMessage","data":{"text":...,"time":<epoch ms>}}
  - {"event":"message","data":{"id":...,"text":...,"sender":...,"time":<epoch ms>}}
  - {"event":"error","data":{"message":...}}                  (malformed frame only)
"""

from __future__ import annotations

import argparse
import asyncio
import inspect
import json
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp
import websockets
from websockets.exceptions import WebSocketException


ANONYMOUS = "Anonymous"


def _rstrip_slash(s: str) -> str:
    return s[:-1] if s.endswith("/") else s


def _ws_chat_url(ws_base: str) -> str:
    return f"{_rstrip_slash(ws_base)}/ws/chat/"


def _http_url(http_base: str, path: str) -> str:
    return f"{_rstrip_slash(http_base)}{path}"


def _format_time(ts_ms: Any) -> str:
    try:
        return datetime.fromtimestamp(int(ts_ms) / 1000).strftime("%H:%M:%S")
    except (TypeError, ValueError, OverflowError, OSError):
        return "--:--:--"


def _frame(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": data}, separators=(",", ":"), ensure_ascii=False)


async def _stdin_lines() -> str:
    return await asyncio.to_thread(sys.stdin.readline)


@dataclass
class ChatView:
    """
    Client-side state: who is online and what has been said.

    `apply` takes one decoded server frame and returns the line to print for it
    (None for frames that only update state silently).
    """

    connection_id: Optional[str] = None
    users: List[str] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)

    def apply(self, frame: Dict[str, Any]) -> Optional[str]:
        event = frame.get("event")
        data = frame.get("data")
        line: Optional[str] = None

        if event == "connected" and isinstance(data, dict):
            self.connection_id = data.get("connectionId")
        elif event == "userList" and isinstance(data, list):
            self.users = [str(u) for u in data]
            line = self.render_users()
        elif event == "systemMessage" and isinstance(data, dict):
            line = f"[{_format_time(data.get('time'))}] * {data.get('text', '')}"
        elif event == "message" and isinstance(data, dict):
            line = f"[{_format_time(data.get('time'))}] {data.get('sender', ANONYMOUS)}: {data.get('text', '')}"
        elif event == "error" and isinstance(data, dict):
            line = f"[error] {data.get('message', '')}"
        # ignore unknown frames

        if line is not None:
            self.lines.append(line)
        return line

    def render_users(self) -> str:
        if not self.users:
            return "Online users (0): none"
        return f"Online users ({len(self.users)}): {', '.join(self.users)}"


def clean_name(name: Optional[str]) -> str:
    return (name or "").strip() or ANONYMOUS


def clean_message(text: Optional[str]) -> Optional[str]:
    """Trim outgoing text; blank messages are not sent."""
    text = (text or "").strip()
    return text or None


class HttpClient:
    def __init__(self, http_base: str):
        self.http_base = http_base
        self._session = None

    async def __aenter__(self) -> "HttpClient":
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def get_json(self, path: str) -> Dict[str, Any]:
        assert self._session is not None
        url = _http_url(self.http_base, path)
        async with self._session.get(url) as resp:
            text = await resp.text()
            try:
                data = json.loads(text) if text else {}
            except json.JSONDecodeError:
                raise RuntimeError(f"Non-JSON response from {path}: {resp.status} {text}")
            if resp.status >= 400:
                raise RuntimeError(f"HTTP {resp.status}: {data}")
            return data


async def ws_chat(
    *,
    ws_base: str,
    origin: Optional[str],
    name: Optional[str],
    message: Optional[str],
    interactive: bool,
    linger: float = 1.0,
) -> int:
    ws_url = _ws_chat_url(ws_base)
    extra_headers = []
    if origin:
        extra_headers.append(("Origin", origin))

    async def _connect():
        kwargs: Dict[str, Any] = {}
        if extra_headers:
            sig = inspect.signature(websockets.connect)
            if "additional_headers" in sig.parameters:
                kwargs["additional_headers"] = extra_headers
            elif "extra_headers" in sig.parameters:
                kwargs["extra_headers"] = extra_headers
        return await websockets.connect(ws_url, **kwargs)

    view = ChatView()

    try:
        ws = await _connect()
    except (OSError, WebSocketException) as e:
        print(f"Could not connect to {ws_url}: {e}", file=sys.stderr)
        return 1

    async with ws:
        async def _render_incoming() -> None:
            async for raw in ws:
                try:
                    frame = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                if not isinstance(frame, dict):
                    continue
                line = view.apply(frame)
                if line is not None:
                    sys.stdout.write(line + "\n")
                    sys.stdout.flush()

        reader = asyncio.create_task(_render_incoming())
        try:
            await ws.send(_frame("join", clean_name(name)))

            text = clean_message(message)
            if text:
                await ws.send(_frame("message", text))

            if not interactive:
                # Give the broadcasts of our own join/message time to arrive.
                await asyncio.sleep(linger)
                return 0

            sys.stderr.write("Interactive mode. Type a line and press Enter to send. Ctrl+C to quit.\n")
            sys.stderr.flush()
            while not reader.done():
                line = await _stdin_lines()
                if not line:
                    # EOF
                    return 0
                text = clean_message(line)
                if text:
                    await ws.send(_frame("message", text))
            return 0
        finally:
            reader.cancel()


async def main() -> int:
    parser = argparse.ArgumentParser(description="CLI client for the Nimbus Chat relay")
    parser.add_argument("--http", default="http://localhost:8000", help="HTTP base, e.g. http://localhost:8000")
    parser.add_argument("--ws", default="ws://localhost:8000", help="WS base, e.g. ws://localhost:8000")
    parser.add_argument("--origin", help="Optional Origin header for WebSocket handshake")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_chat = sub.add_parser("chat", help="Join the chat over WebSocket")
    p_chat.add_argument("--name", default="", help="Display name (blank joins as Anonymous)")
    p_chat.add_argument("--message", help="Optional message to send right after joining")
    p_chat.add_argument("--interactive", action="store_true", help="Stay connected; send stdin lines as messages")

    sub.add_parser("status", help="Check the server is up (HTTP)")

    args = parser.parse_args()

    if args.cmd == "chat":
        return await ws_chat(
            ws_base=args.ws,
            origin=args.origin,
            name=args.name,
            message=args.message,
            interactive=bool(args.interactive),
        )

    async with HttpClient(args.http) as http:
        if args.cmd == "status":
            data = await http.get_json("/")
            print(json.dumps(data, indent=2, ensure_ascii=False))
            return 0

    return 2


def run() -> int:
    return asyncio.run(main())


if __name__ == "__main__":
    raise SystemExit(run())
