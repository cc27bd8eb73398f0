"""
Server-Sent Events transport for the broadcast hub.

Each hub payload becomes one `data: <json>` frame. While idle the stream
sends a comment frame every `keepalive` seconds, which also gives it a
chance to notice that the client went away.
"""

import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from ..broadcast.hub import BroadcastHub
from ..broadcast.listener import QueueListener
from ..core.errors import ListenerClosedError

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
KEEPALIVE_FRAME = ": keep-alive\n\n"


def format_sse(payload: str) -> str:
    """Frame one serialized event."""
    return f"data: {payload}\n\n"


async def sse_event_stream(
    hub: BroadcastHub,
    listener: QueueListener,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    keepalive: float = 15.0,
) -> AsyncIterator[str]:
    """
    Yield SSE frames for a subscribed listener until it closes.

    The listener is always unsubscribed on exit, including when the
    response task is cancelled by the server on client disconnect.

    Args:
        hub: Hub the listener is subscribed to
        listener: Subscribed queue listener
        is_disconnected: Async predicate polled while idle (e.g. Request.is_disconnected)
        keepalive: Idle seconds between keep-alive comments
    """
    try:
        while True:
            try:
                payload = await listener.get(timeout=keepalive)
            except ListenerClosedError:
                logger.info(f"SSE stream for listener {listener.id} closed")
                break

            if payload is None:
                if is_disconnected is not None and await is_disconnected():
                    logger.info(f"SSE client for listener {listener.id} disconnected")
                    break
                yield KEEPALIVE_FRAME
                continue

            yield format_sse(payload)
    finally:
        hub.unsubscribe(listener)
