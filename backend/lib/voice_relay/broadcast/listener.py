"""Broadcast listeners - output sinks registered with the hub."""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.errors import ListenerClosedError

logger = logging.getLogger(__name__)

# Marks the end of a closed listener's stream
_CLOSED = object()


class Listener(ABC):
    """
    Base class for broadcast sinks.

    A sink receives already-serialized event payloads. Any exception raised
    from send() counts as a write failure and gets the sink evicted.
    """

    def __init__(self):
        self.id = uuid.uuid4().hex[:8]
        self.closed = False

    @abstractmethod
    async def send(self, payload: str) -> None:
        """
        Deliver one serialized event.

        Raises:
            ListenerClosedError: If the listener is closed
            Exception: Any other write failure
        """
        pass

    def close(self) -> None:
        """Mark the sink closed. Further sends fail."""
        self.closed = True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id}{' closed' if self.closed else ''}>"


class QueueListener(Listener):
    """
    Bounded in-memory sink drained by a transport (e.g. an SSE response).

    A full queue is a write failure: a reader that stops draining gets
    evicted instead of stalling delivery to everyone else.

    Args:
        max_size: Maximum queued payloads. Default 256.
    """

    def __init__(self, max_size: int = 256):
        super().__init__()
        self.max_size = max_size
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)

    async def send(self, payload: str) -> None:
        if self.closed:
            raise ListenerClosedError(f"Listener {self.id} is closed")
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            raise ListenerClosedError(
                f"Listener {self.id} queue full ({self.max_size} pending)"
            )

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        # Wake a blocked reader; a full queue has nobody waiting on it
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def get(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Wait for the next payload.

        Args:
            timeout: Seconds to wait (None waits forever)

        Returns:
            Next payload, or None if the timeout expired

        Raises:
            ListenerClosedError: Once the listener is closed and drained
        """
        if self.closed and self._queue.empty():
            raise ListenerClosedError(f"Listener {self.id} is closed")
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CLOSED:
            raise ListenerClosedError(f"Listener {self.id} is closed")
        return item

    def drain(self) -> List[str]:
        """Return every payload queued so far without waiting."""
        items = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return items
            if item is not _CLOSED:
                items.append(item)

    def qsize(self) -> int:
        return self._queue.qsize()
