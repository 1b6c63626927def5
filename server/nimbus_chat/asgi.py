"""
ASGI config for the nimbus_chat project.

It exposes the ASGI callable as a module-level variable named ``application``.
Serve it with Daphne (`manage.py runserver` uses it automatically) or Uvicorn.
Run a single worker process: the session registry lives in process memory.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "nimbus_chat.settings")

from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import AllowedHostsOriginValidator
from django.conf import settings
from django.core.asgi import get_asgi_application

# Initialize Django (and RealtimeConfig.ready) before importing consumers.
django_asgi_app = get_asgi_application()

from nimbus_chat.routing import websocket_urlpatterns  # noqa: E402

# Channels router for WebSockets.
#
# The chat accepts any origin by default (clients are served from other dev
# servers). Set WS_ALLOWED_ORIGINS_CHECK=true to only accept Origins whose host
# is in ALLOWED_HOSTS.
websocket_app = URLRouter(websocket_urlpatterns)
if settings.WS_ALLOWED_ORIGINS_CHECK:
    websocket_app = AllowedHostsOriginValidator(websocket_app)

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": websocket_app,
    }
)
