"""
Yemeksepeti Proxy

Relays the Yemeksepeti integration-middleware login and order accept calls.
Callers authenticate themselves; nothing is cached here.
"""

from typing import Any, Optional

import httpx

from order_relay.config import settings
from order_relay.models.upstream import UpstreamResult
from order_relay.services.http_client import get_http_client
from order_relay.utils.exceptions import ValidationException
from order_relay.utils.logging_config import get_logger
from order_relay.utils.relay import send_upstream

logger = get_logger(__name__)

LOGIN_PATH = "/v2/login"
ORDER_ACCEPT_PATH = "/v2/order/accept"
BODY_TOKEN_FIELDS = ("token", "access_token", "bearerToken")


def resolve_authorization(
    authorization_header: Optional[str], payload: Any
) -> Optional[str]:
    """
    Pick the Authorization value for an accept call.

    The inbound Authorization header wins and is forwarded as-is. Otherwise a
    token from the body is used, wrapped as a bearer token when it is not
    already prefixed.
    """
    if authorization_header and authorization_header.strip():
        return authorization_header

    if not isinstance(payload, dict):
        return None

    for field in BODY_TOKEN_FIELDS:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            if value.lower().startswith("bearer "):
                return value
            return f"Bearer {value}"
    return None


class YemeksepetiProxy:
    """Relays Yemeksepeti partner calls"""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    async def login(self, username: Optional[str], password: Optional[str]) -> UpstreamResult:
        """
        Exchange partner credentials for a Yemeksepeti token.

        Raises:
            ValidationException: If username or password is missing
        """
        if not username or not password:
            raise ValidationException("username and password are required")

        return await send_upstream(
            self.http_client,
            "POST",
            f"{self.base_url}{LOGIN_PATH}",
            operation="yemeksepeti_login",
            form_body={
                "username": username,
                "password": password,
                "grant_type": "client_credentials",
            },
        )

    async def accept_order(
        self, payload: Any, authorization_header: Optional[str] = None
    ) -> UpstreamResult:
        """
        Forward an order accept call with the caller's bearer token.

        Raises:
            ValidationException: If no token was supplied in header or body
        """
        authorization = resolve_authorization(authorization_header, payload)
        if not authorization:
            raise ValidationException(
                "Authorization required: send an 'Authorization: Bearer <token>' "
                "header or token/access_token/bearerToken in the body"
            )

        return await send_upstream(
            self.http_client,
            "POST",
            f"{self.base_url}{ORDER_ACCEPT_PATH}",
            operation="yemeksepeti_order_accept",
            headers={"Authorization": authorization},
            json_body=payload if payload is not None else {},
        )


_proxy_instance: Optional[YemeksepetiProxy] = None


def get_yemeksepeti_proxy() -> YemeksepetiProxy:
    """Get or create YemeksepetiProxy singleton instance."""
    global _proxy_instance
    if _proxy_instance is None:
        _proxy_instance = YemeksepetiProxy(
            http_client=get_http_client(),
            base_url=settings.yemeksepeti_api_base_url,
        )
    return _proxy_instance


def reset_yemeksepeti_proxy() -> None:
    global _proxy_instance
    _proxy_instance = None
