"""
Broadcast Hub

In-process publish/subscribe fanout of relay events to every connected
listener:

  - Connection acknowledgement delivered inside subscribe()
  - Publishes serialized against each other (total order, per-listener order)
  - A failing sink is evicted without affecting the others
  - No retained history; late subscribers miss earlier events

Usage:
    hub = BroadcastHub()
    listener = await hub.subscribe()
    await hub.publish(RelayEvent.status("Processing message..."))
    hub.unsubscribe(listener)
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set, Union

from ..core.types import RelayEvent
from .listener import Listener, QueueListener

logger = logging.getLogger(__name__)


class BroadcastHub:
    """
    Best-effort multicast to the current listener set.

    Each publish delivers to a snapshot of listeners taken when it acquires
    the hub lock. Subscribing takes the same lock, so a listener's first
    event is always the connection acknowledgement.
    """

    def __init__(self, listener_queue_size: int = 256):
        """
        Args:
            listener_queue_size: Queue bound for listeners created by subscribe()
        """
        self.listener_queue_size = listener_queue_size
        self._listeners: Set[Listener] = set()
        self._lock = asyncio.Lock()

        self.total_published = 0
        self.total_delivered = 0
        self.total_evicted = 0

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def is_subscribed(self, listener: Listener) -> bool:
        return listener in self._listeners

    @staticmethod
    def _encode(event: Union[RelayEvent, Dict[str, Any]]) -> str:
        record = event.to_dict() if isinstance(event, RelayEvent) else event
        return json.dumps(record)

    async def subscribe(self, listener: Optional[Listener] = None) -> Listener:
        """
        Register a sink and send it the connection acknowledgement.

        Args:
            listener: Sink to register. A new QueueListener if None.

        Returns:
            The registered listener
        """
        if listener is None:
            listener = QueueListener(max_size=self.listener_queue_size)

        async with self._lock:
            await listener.send(self._encode(RelayEvent.connected()))
            self._listeners.add(listener)

        logger.info(f"📡 Listener {listener.id} subscribed ({len(self._listeners)} connected)")
        return listener

    def unsubscribe(self, listener: Listener) -> bool:
        """
        Remove a sink. Unsubscribing twice is a no-op.

        Returns:
            True if the listener was subscribed
        """
        removed = listener in self._listeners
        self._listeners.discard(listener)
        listener.close()
        if removed:
            logger.info(f"🔌 Listener {listener.id} unsubscribed ({len(self._listeners)} connected)")
        return removed

    async def publish(self, event: Union[RelayEvent, Dict[str, Any]]) -> int:
        """
        Deliver an event to every subscribed listener.

        Args:
            event: RelayEvent or a plain `{type, ...}` dict

        Returns:
            Number of listeners that received the event
        """
        payload = self._encode(event)
        delivered = 0

        async with self._lock:
            self.total_published += 1
            for listener in list(self._listeners):
                if listener.closed:
                    self._listeners.discard(listener)
                    continue
                try:
                    await listener.send(payload)
                    delivered += 1
                except Exception as e:
                    self._evict(listener, e)

        self.total_delivered += delivered
        logger.debug(f"Published {payload[:60]}... to {delivered} listener(s)")
        return delivered

    def _evict(self, listener: Listener, error: Exception) -> None:
        self._listeners.discard(listener)
        listener.close()
        self.total_evicted += 1
        logger.warning(f"⚠️ Evicted listener {listener.id} after write failure: {error}")

    def close_all(self) -> None:
        """Close and remove every listener (shutdown)."""
        for listener in list(self._listeners):
            self.unsubscribe(listener)

    def get_stats(self) -> Dict[str, Any]:
        """Return hub statistics."""
        return {
            "listeners": len(self._listeners),
            "total_published": self.total_published,
            "total_delivered": self.total_delivered,
            "total_evicted": self.total_evicted,
            "queued": sum(
                listener.qsize() for listener in self._listeners
                if isinstance(listener, QueueListener)
            ),
        }
