"""
Order Event Bus

In-process publish/subscribe channel for marketplace order events. Webhook
handlers publish; any notification transport attaches as a subscriber.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Set

from order_relay.config import settings
from order_relay.models.order_events import OrderEvent
from order_relay.utils.logging_config import get_logger

logger = get_logger(__name__)


class OrderEventBus:
    """Fans each published event out to every subscriber queue"""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue]:
        """
        Register a subscriber for the duration of the context.

        Yields:
            Queue receiving every OrderEvent published while subscribed
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        logger.debug(
            "Order event subscriber added",
            extra={"subscribers": len(self._subscribers)},
        )
        try:
            yield queue
        finally:
            self._subscribers.discard(queue)

    def publish(self, event: OrderEvent) -> int:
        """
        Deliver an event to all current subscribers without blocking.

        A subscriber whose queue is full misses the event.

        Returns:
            Number of subscribers the event was delivered to
        """
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "Order event subscriber queue full, dropping event",
                    extra={
                        "platform": event.platform.value,
                        "event_type": event.event_type.value,
                        "order_id": event.order_id,
                    },
                )

        logger.info(
            f"Published {event.platform.value} {event.event_type.value} order event",
            extra={
                "platform": event.platform.value,
                "event_type": event.event_type.value,
                "order_id": event.order_id,
                "delivered": delivered,
            },
        )
        return delivered


_event_bus_instance: Optional[OrderEventBus] = None


def get_order_event_bus() -> OrderEventBus:
    """Get or create OrderEventBus singleton instance."""
    global _event_bus_instance
    if _event_bus_instance is None:
        _event_bus_instance = OrderEventBus(queue_size=settings.order_event_queue_size)
    return _event_bus_instance
