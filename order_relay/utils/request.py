"""Inbound request helpers"""

import json
from typing import Any

from fastapi import Request

from order_relay.utils.exceptions import ValidationException


async def read_json_body(request: Request) -> Any:
    """
    Parse the inbound body as JSON.

    Returns:
        Decoded JSON, or None for an empty body

    Raises:
        ValidationException: If the body is not valid JSON
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ValidationException("Request body must be valid JSON") from e
