"""
Django app config for the realtime chat app.

Owns the process-wide SessionRegistry: created once when Django finishes loading
apps and shared by every ChatConsumer through the BroadcastRelay.
"""

import logging

from django.apps import AppConfig

from .registry import SessionRegistry
from .relay import BroadcastRelay

logger = logging.getLogger(__name__)


class RealtimeConfig(AppConfig):
    """App configuration for the chat relay."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "realtime"

    registry: SessionRegistry
    relay: BroadcastRelay

    def ready(self):
        self.registry = SessionRegistry()
        self.relay = BroadcastRelay(self.registry)
        logger.info("Session registry ready")
