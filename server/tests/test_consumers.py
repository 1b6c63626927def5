"""End-to-end tests for ChatConsumer over the in-memory channel layer."""

from __future__ import annotations

import json

import pytest
from channels.testing import WebsocketCommunicator

from realtime.consumers import ChatConsumer
from realtime.registry import SessionRegistry
from realtime.relay import BroadcastRelay


async def _connect(app) -> WebsocketCommunicator:
    communicator = WebsocketCommunicator(app, "/ws/chat/")
    connected, _ = await communicator.connect()
    assert connected
    hello = await communicator.receive_json_from()
    assert hello["event"] == "connected"
    assert hello["data"]["connectionId"]
    return communicator


async def _join(communicator: WebsocketCommunicator, name):
    await communicator.send_json_to({"event": "join", "data": name})
    user_list = await communicator.receive_json_from()
    notice = await communicator.receive_json_from()
    return user_list, notice


@pytest.mark.asyncio
async def test_connect_sends_only_connection_id(chat_app, registry: SessionRegistry):
    a = await _connect(chat_app)
    b = await _connect(chat_app)

    assert await a.receive_nothing()
    assert len(registry) == 0

    await a.disconnect()
    await b.disconnect()


@pytest.mark.asyncio
async def test_join_broadcasts_user_list_before_notice(chat_app):
    a = await _connect(chat_app)
    b = await _connect(chat_app)

    user_list, notice = await _join(a, "Alice")
    assert user_list == {"event": "userList", "data": ["Alice"]}
    assert notice["event"] == "systemMessage"
    assert notice["data"]["text"] == "Alice joined the chat."

    # the other socket sees the same two events in the same order
    assert await b.receive_json_from() == user_list
    assert await b.receive_json_from() == notice

    await a.disconnect()
    await b.disconnect()


@pytest.mark.asyncio
async def test_message_reaches_all_three_clients_identically(chat_app):
    clients = [await _connect(chat_app) for _ in range(3)]
    a = clients[0]

    await _join(a, "Alice")
    for other in clients[1:]:
        await other.receive_json_from()
        await other.receive_json_from()

    await a.send_json_to({"event": "message", "data": "hi"})
    received = [await c.receive_json_from() for c in clients]

    assert received[0]["event"] == "message"
    assert received[0]["data"]["sender"] == "Alice"
    assert received[0]["data"]["text"] == "hi"
    assert received[1] == received[0]
    assert received[2] == received[0]

    for c in clients:
        await c.disconnect()


@pytest.mark.asyncio
async def test_message_before_join_is_anonymous(chat_app):
    a = await _connect(chat_app)

    await a.send_json_to({"event": "message", "data": "hi"})
    msg = await a.receive_json_from()

    assert msg["data"]["sender"] == "Anonymous"
    await a.disconnect()


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   "])
async def test_blank_name_joins_as_anonymous(chat_app, name):
    a = await _connect(chat_app)

    user_list, _ = await _join(a, name)
    assert user_list["data"] == ["Anonymous"]

    await a.send_json_to({"event": "message", "data": "hello"})
    msg = await a.receive_json_from()
    assert msg["data"]["sender"] == "Anonymous"

    await a.disconnect()


@pytest.mark.asyncio
async def test_empty_message_is_still_broadcast(chat_app):
    a = await _connect(chat_app)

    await a.send_json_to({"event": "message", "data": ""})
    msg = await a.receive_json_from()

    assert msg["data"]["text"] == ""
    await a.disconnect()


@pytest.mark.asyncio
async def test_disconnect_without_join_announces_nothing(chat_app):
    watcher = await _connect(chat_app)
    leaver = await _connect(chat_app)

    await leaver.disconnect()

    assert await watcher.receive_nothing()
    await watcher.disconnect()


@pytest.mark.asyncio
async def test_disconnect_after_join_announces_leave(chat_app, registry: SessionRegistry):
    watcher = await _connect(chat_app)
    bob = await _connect(chat_app)

    await _join(bob, "Bob")
    await watcher.receive_json_from()
    await watcher.receive_json_from()

    await bob.disconnect()

    user_list = await watcher.receive_json_from()
    notice = await watcher.receive_json_from()
    assert user_list == {"event": "userList", "data": []}
    assert notice["event"] == "systemMessage"
    assert notice["data"]["text"] == "Bob left the chat."
    assert len(registry) == 0

    await watcher.disconnect()


@pytest.mark.asyncio
async def test_rejoin_renames_without_duplicate_entry(chat_app):
    a = await _connect(chat_app)

    await _join(a, "Alice")
    user_list, notice = await _join(a, "Alicia")

    assert user_list["data"] == ["Alicia"]
    assert notice["data"]["text"] == "Alicia joined the chat."
    await a.disconnect()


@pytest.mark.asyncio
async def test_invalid_json_gets_error_to_sender_only(chat_app):
    a = await _connect(chat_app)
    b = await _connect(chat_app)

    await a.send_to(text_data="not json")
    error = await a.receive_json_from()

    assert error == {"event": "error", "data": {"message": "Invalid JSON"}}
    assert await b.receive_nothing()

    await a.disconnect()
    await b.disconnect()


@pytest.mark.asyncio
async def test_deeply_nested_frame_gets_error_and_socket_survives(chat_app, registry: SessionRegistry):
    a = await _connect(chat_app)
    b = await _connect(chat_app)
    await _join(a, "Ghost")
    await b.receive_json_from()
    await b.receive_json_from()

    await a.send_to(text_data="[" * 100000)
    error = await a.receive_json_from()

    assert error == {"event": "error", "data": {"message": "Invalid JSON"}}
    assert await b.receive_nothing()

    # still serving frames
    await a.send_json_to({"event": "message", "data": "still here"})
    assert (await a.receive_json_from())["data"]["sender"] == "Ghost"
    assert (await b.receive_json_from())["data"]["text"] == "still here"

    # and disconnect still cleans up
    await a.disconnect()
    assert registry.snapshot() == []
    assert await b.receive_json_from() == {"event": "userList", "data": []}
    assert (await b.receive_json_from())["data"]["text"] == "Ghost left the chat."
    await b.disconnect()


@pytest.mark.asyncio
async def test_lone_surrogates_are_sent_as_valid_utf8(chat_app):
    a = await _connect(chat_app)
    b = await _connect(chat_app)

    await a.send_to(text_data='{"event":"join","data":"\\ud800"}')
    for client in (a, b):
        raw = await client.receive_from()
        raw.encode("utf-8")
        assert json.loads(raw) == {"event": "userList", "data": ["\ud800"]}
        raw = await client.receive_from()
        raw.encode("utf-8")
        assert json.loads(raw)["data"]["text"] == "\ud800 joined the chat."

    await a.send_to(text_data='{"event":"message","data":"hi \\udfff"}')
    for client in (a, b):
        raw = await client.receive_from()
        raw.encode("utf-8")
        message = json.loads(raw)["data"]
        assert message["sender"] == "\ud800"
        assert message["text"] == "hi \udfff"

    await a.disconnect()
    await b.disconnect()


@pytest.mark.asyncio
async def test_events_after_disconnect_are_ignored(relay: BroadcastRelay, registry: SessionRegistry):
    consumer = ChatConsumer(relay=relay)
    consumer._disconnected = True

    await consumer.receive(text_data='{"event":"join","data":"X"}')

    assert len(registry) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("frame", [["join", "Alice"], {"data": "Alice"}, {"event": ""}])
async def test_malformed_frame_gets_error(chat_app, registry: SessionRegistry, frame):
    a = await _connect(chat_app)

    await a.send_json_to(frame)
    error = await a.receive_json_from()

    assert error["event"] == "error"
    assert len(registry) == 0
    await a.disconnect()


@pytest.mark.asyncio
async def test_unknown_event_is_ignored(chat_app):
    a = await _connect(chat_app)

    await a.send_json_to({"event": "typing", "data": True})

    assert await a.receive_nothing()
    await a.disconnect()


@pytest.mark.asyncio
async def test_binary_frames_are_ignored(chat_app):
    a = await _connect(chat_app)

    await a.send_to(bytes_data=b"\x00\x01")

    assert await a.receive_nothing()
    await a.disconnect()


@pytest.mark.asyncio
async def test_asgi_application_uses_app_owned_registry():
    from django.apps import apps

    from nimbus_chat.asgi import application

    app_registry = apps.get_app_config("realtime").registry
    app_registry.clear()

    a = await _connect(application)
    await _join(a, "Carol")
    assert app_registry.snapshot() == ["Carol"]

    await a.disconnect()
    assert app_registry.snapshot() == []
