"""Test configuration helpers."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Make `nimbus_chat`, `realtime` and the root-level `chat_client` importable when
# tests run from an arbitrary working directory without an editable install.
SERVER_ROOT = Path(__file__).resolve().parents[1]
REPO_ROOT = SERVER_ROOT.parent
for path in (SERVER_ROOT, REPO_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "nimbus_chat.settings")
os.environ["DJANGO_DEBUG"] = "true"
# Always use the in-memory channel layer under test.
os.environ.pop("REDIS_URL", None)

import django  # noqa: E402
from django.test.utils import setup_test_environment  # noqa: E402

django.setup()
setup_test_environment()

from realtime.consumers import ChatConsumer  # noqa: E402
from realtime.registry import SessionRegistry  # noqa: E402
from realtime.relay import BroadcastRelay  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_channel_layer():
    """Give every test its own in-memory layer (queues are bound to the test's event loop)."""
    from channels.layers import channel_layers

    channel_layers.backends.clear()
    yield
    channel_layers.backends.clear()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def relay(registry: SessionRegistry) -> BroadcastRelay:
    return BroadcastRelay(registry)


@pytest.fixture
def chat_app(relay: BroadcastRelay):
    """ASGI app for /ws/chat/ wired to the test's own registry."""
    return ChatConsumer.as_asgi(relay=relay)
