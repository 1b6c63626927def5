"""
HTTP views for the realtime app.

- GET /chat/: single-page browser client for the lobby WebSocket.
"""

from __future__ import annotations

from django.shortcuts import render
from django.views.decorators.http import require_http_methods


@require_http_methods(["GET"])
def chat_page(request):
    """Serve the chat page; it connects back to /ws/chat/ on the same host."""
    return render(request, "realtime/chat.html")
