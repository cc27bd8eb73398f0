"""
Transports that carry broadcast events to clients.

Available transports:
- sse_event_stream: Server-Sent Events (text/event-stream)
"""

from .sse import KEEPALIVE_FRAME, SSE_HEADERS, format_sse, sse_event_stream

__all__ = [
    "KEEPALIVE_FRAME",
    "SSE_HEADERS",
    "format_sse",
    "sse_event_stream",
]
