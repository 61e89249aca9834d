"""
Order Event Stream

WebSocket channel that pushes every webhook-derived order event to connected
dashboards as ``{"event": "newOrder", "data": <OrderEvent>}``.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket

from order_relay.models.order_events import Platform
from order_relay.services.order_events import OrderEventBus, get_order_event_bus
from order_relay.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["events"])

NEW_ORDER_EVENT = "newOrder"


async def _forward_events(
    websocket: WebSocket, queue: asyncio.Queue, platform: Optional[Platform]
) -> None:
    while True:
        event = await queue.get()
        if platform is not None and event.platform != platform:
            continue
        await websocket.send_json(
            {"event": NEW_ORDER_EVENT, "data": event.model_dump(mode="json")}
        )


@router.websocket("/ws/orders")
async def order_event_stream(
    websocket: WebSocket,
    platform: Optional[Platform] = None,
    bus: OrderEventBus = Depends(get_order_event_bus),
):
    """
    Stream order events until the client disconnects.

    The subscription exists before the handshake completes, so no event
    published after ``accept`` is missed. Inbound messages are ignored.
    """
    async with bus.subscribe() as queue:
        await websocket.accept()
        logger.info(
            "Order event client connected",
            extra={
                "platform": platform.value if platform else None,
                "subscribers": bus.subscriber_count,
            },
        )

        forwarder = asyncio.create_task(_forward_events(websocket, queue, platform))
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            forwarder.cancel()
            (outcome,) = await asyncio.gather(forwarder, return_exceptions=True)
            if not isinstance(outcome, asyncio.CancelledError):
                logger.warning(
                    f"Order event stream stopped: {outcome}",
                    extra={"error_type": type(outcome).__name__},
                )

        logger.info("Order event client disconnected")
