"""
Realtime WebSocket app.

This app contains:
- A Channels consumer for `/ws/chat/`
- An in-memory session registry (connection id -> display name)
- The broadcast relay that turns join/message/disconnect events into fan-out events
- The browser chat page served at `/chat/`
"""
