"""
Upstream Relay Utilities

Sends a single request to a partner API and turns the reply into an
UpstreamResult that can be handed back to the caller verbatim.
"""

import json
from typing import Any, Dict, Optional

import httpx
from fastapi.responses import JSONResponse, Response

from order_relay.models.upstream import UpstreamResult
from order_relay.utils.exceptions import UpstreamUnavailableException
from order_relay.utils.logging_config import get_logger

logger = get_logger(__name__)

_NO_BODY_STATUSES = {204, 304}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_upstream_body(text: str) -> Any:
    """
    Parse a JSON body, wrapping anything unparseable as ``{"raw": text}``.

    NaN and Infinity are rejected like any other invalid JSON; the response
    encoder cannot render them.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return {"raw": text}


async def send_upstream(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    operation: str,
    headers: Optional[Dict[str, str]] = None,
    json_body: Any = None,
    form_body: Optional[Dict[str, str]] = None,
) -> UpstreamResult:
    """
    Perform one upstream call.

    Args:
        client: Shared HTTP client
        method: HTTP method
        url: Absolute upstream URL
        operation: Operation name, for logging only
        headers: Extra request headers
        json_body: Body serialized as JSON; None sends no body
        form_body: Body sent form-encoded instead of JSON

    Returns:
        UpstreamResult with the upstream status and parsed-or-wrapped body

    Raises:
        UpstreamUnavailableException: If the call could not complete
    """
    request_headers = {"Content-Type": "application/json"}
    if form_body is not None:
        request_headers["Content-Type"] = "application/x-www-form-urlencoded"
    request_headers.update(headers or {})

    kwargs: Dict[str, Any] = {"headers": request_headers}
    if form_body is not None:
        kwargs["data"] = form_body
    elif json_body is not None:
        kwargs["content"] = json.dumps(json_body)

    try:
        response = await client.request(method, url, **kwargs)
    except httpx.RequestError as e:
        logger.error(
            f"Upstream call failed for {operation}: {e}",
            extra={
                "operation": operation,
                "method": method,
                "url": url,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise UpstreamUnavailableException(
            details={"operation": operation, "error_type": type(e).__name__}
        ) from e

    logger.info(
        f"Upstream {operation} answered {response.status_code}",
        extra={
            "operation": operation,
            "method": method,
            "status_code": response.status_code,
        },
    )

    return UpstreamResult(
        status_code=response.status_code,
        body=parse_upstream_body(response.text),
    )


def to_response(result: UpstreamResult) -> Response:
    """Render an UpstreamResult with the upstream status code unchanged"""
    if result.status_code < 200 or result.status_code in _NO_BODY_STATUSES:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.body)
