"""
Order Event Models

Normalized envelope for marketplace webhooks published on the order event bus.
The marketplace payload itself is carried untouched in ``data``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Platform(str, Enum):
    GETIR = "getir"
    YEMEKSEPETI = "yemeksepeti"
    MIGROS = "migros"


class OrderEventType(str, Enum):
    ADD = "add"
    UPDATE = "update"
    CANCEL = "cancel"
    COURIER = "courier"


class OrderEvent(BaseModel):
    """A webhook delivery from one of the marketplaces"""

    platform: Platform
    event_type: OrderEventType
    order_id: Optional[str] = Field(None, description="Marketplace order ID, if known")
    data: Any = Field(default=None, description="Raw webhook payload")
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
