import time
import uuid


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_message_id(timestamp_ms: int | None = None) -> str:
    """Time-based id with a short random suffix, e.g. '1718000000000-3fa9c'.

    Unique enough for rendering keys on clients; not a cryptographic guarantee.
    """
    if timestamp_ms is None:
        timestamp_ms = now_ms()
    return f"{timestamp_ms}-{uuid.uuid4().hex[:5]}"
