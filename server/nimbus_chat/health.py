from __future__ import annotations

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from nimbus_chat.applib.config import config


@require_http_methods(["GET", "HEAD"])
def health(request):
    """
    Liveness endpoint.

    Keep it cheap and dependency-free:
    - No channel layer call (avoid cascading failure during Redis maintenance)
    - No registry access
    """

    return JsonResponse({"status": "OK", "message": config.HEALTH_MESSAGE})
