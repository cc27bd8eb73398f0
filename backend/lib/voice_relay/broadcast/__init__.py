"""Broadcast hub and listener sinks."""

from .hub import BroadcastHub
from .listener import Listener, QueueListener

__all__ = [
    "BroadcastHub",
    "Listener",
    "QueueListener",
]
