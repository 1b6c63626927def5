"""
URL configuration for the nimbus_chat project.

HTTP surface only; the chat itself is the WebSocket route in `realtime.routing`.
"""
from django.urls import path

from realtime.views import chat_page
from .health import health

urlpatterns = [
    path("", health),
    path("health/", health),
    # Browser client (vanilla HTML/CSS/JS)
    path("chat/", chat_page),
]
