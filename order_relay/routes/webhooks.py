"""
Marketplace Webhook Endpoints

Receives order webhooks from Getir, Yemeksepeti and Migros Yemek, publishes
them on the order event bus and acknowledges with a plain ``OK``.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from order_relay.models.order_events import OrderEvent, OrderEventType, Platform
from order_relay.services.order_events import OrderEventBus, get_order_event_bus
from order_relay.utils.logging_config import get_logger, get_correlation_id
from order_relay.utils.request import read_json_body

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

ORDER_ID_FIELDS = ("orderId", "id", "code")


def extract_order_id(payload: Any) -> Optional[str]:
    """Best-effort order ID from a marketplace payload"""
    if not isinstance(payload, dict):
        return None

    for field in ORDER_ID_FIELDS:
        value = payload.get(field)
        if value not in (None, ""):
            return str(value)

    for nested in ("foodOrder", "data"):
        if isinstance(payload.get(nested), dict):
            order_id = extract_order_id(payload[nested])
            if order_id:
                return order_id
    return None


async def _receive(
    request: Request,
    bus: OrderEventBus,
    platform: Platform,
    event_type: OrderEventType,
    order_id: Optional[str] = None,
) -> PlainTextResponse:
    payload = await read_json_body(request)
    event = OrderEvent(
        platform=platform,
        event_type=event_type,
        order_id=order_id or extract_order_id(payload),
        data=payload,
    )

    logger.info(
        f"Received {platform.value} {event_type.value} webhook",
        extra={
            "platform": platform.value,
            "event_type": event_type.value,
            "order_id": event.order_id,
            "correlation_id": get_correlation_id(),
        },
    )

    bus.publish(event)
    return PlainTextResponse("OK", status_code=200)


@router.post("/getir/add")
async def getir_add(request: Request, bus: OrderEventBus = Depends(get_order_event_bus)):
    return await _receive(request, bus, Platform.GETIR, OrderEventType.ADD)


@router.post("/yemeksepeti/add")
async def yemeksepeti_add(
    request: Request, bus: OrderEventBus = Depends(get_order_event_bus)
):
    return await _receive(request, bus, Platform.YEMEKSEPETI, OrderEventType.ADD)


@router.post("/yemeksepeti/update")
async def yemeksepeti_update(
    request: Request, bus: OrderEventBus = Depends(get_order_event_bus)
):
    return await _receive(request, bus, Platform.YEMEKSEPETI, OrderEventType.UPDATE)


@router.post("/yemeksepeti/add/order/{order_id}")
async def yemeksepeti_add_order(
    order_id: str,
    request: Request,
    bus: OrderEventBus = Depends(get_order_event_bus),
):
    """Yemeksepeti add webhook with the order ID in the path."""
    return await _receive(
        request, bus, Platform.YEMEKSEPETI, OrderEventType.ADD, order_id=order_id
    )


@router.post("/migros/add")
async def migros_add(request: Request, bus: OrderEventBus = Depends(get_order_event_bus)):
    return await _receive(request, bus, Platform.MIGROS, OrderEventType.ADD)


@router.post("/migros/cancel")
async def migros_cancel(
    request: Request, bus: OrderEventBus = Depends(get_order_event_bus)
):
    return await _receive(request, bus, Platform.MIGROS, OrderEventType.CANCEL)


@router.post("/migros/kurye")
async def migros_courier(
    request: Request, bus: OrderEventBus = Depends(get_order_event_bus)
):
    return await _receive(request, bus, Platform.MIGROS, OrderEventType.COURIER)
