"""
Getir Action Proxy

Single entry point for every Getir order-management call. The operation's
method, path and body handling come from the OPERATIONS dispatch table; the
token comes either from the caller's ``token`` header or from the token
manager's cache. Upstream replies are relayed unchanged.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from order_relay.auth.token_manager import GetirTokenManager, get_token_manager
from order_relay.config import settings
from order_relay.models.getir import (
    LOGIN_PATH,
    OPERATIONS,
    TOKEN_HEADER,
    CredentialSource,
    GetirOperation,
    OperationSpec,
)
from order_relay.models.upstream import UpstreamResult
from order_relay.services.http_client import get_http_client
from order_relay.utils.exceptions import (
    CredentialUnavailableException,
    GetirAuthException,
    ValidationException,
)
from order_relay.utils.logging_config import get_logger
from order_relay.utils.relay import send_upstream

logger = get_logger(__name__)

MISSING_TOKEN_MESSAGE = "token header is required"


class GetirActionProxy:
    """Relays order actions to the Getir partner API"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        token_manager: GetirTokenManager,
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.token_manager = token_manager

    async def invoke(
        self,
        operation: GetirOperation,
        order_id: Optional[str] = None,
        payload: Any = None,
        credential_source: CredentialSource = CredentialSource.CACHED,
        client_token: Optional[str] = None,
    ) -> UpstreamResult:
        """
        Run one order action against Getir.

        Args:
            operation: Which action to perform
            order_id: Getir food order ID, for order-scoped actions
            payload: Inbound JSON body, forwarded unchanged
            credential_source: Use the cached token or the caller's token
            client_token: Value of the caller's ``token`` header

        Returns:
            UpstreamResult carrying Getir's status code and body

        Raises:
            ValidationException: Missing header, order ID or required field
            CredentialUnavailableException: Cached token could not be obtained
            UpstreamUnavailableException: Getir could not be reached
        """
        spec = OPERATIONS[operation]
        self._validate(operation, spec, order_id, payload, credential_source, client_token)

        if credential_source == CredentialSource.CLIENT_SUPPLIED:
            token = client_token
        else:
            token = await self._cached_token(operation)

        path = spec.path(quote(order_id, safe="") if order_id else None)
        json_body = None
        if spec.sends_body:
            json_body = payload if payload is not None else {}

        logger.info(
            f"Proxying Getir {operation.value}",
            extra={
                "operation": operation.value,
                "order_id": order_id,
                "credential_source": credential_source.value,
            },
        )

        return await send_upstream(
            self.http_client,
            spec.method,
            f"{self.base_url}{path}",
            operation=operation.value,
            headers={TOKEN_HEADER: token},
            json_body=json_body,
        )

    def _validate(
        self,
        operation: GetirOperation,
        spec: OperationSpec,
        order_id: Optional[str],
        payload: Any,
        credential_source: CredentialSource,
        client_token: Optional[str],
    ) -> None:
        if credential_source not in spec.modes:
            raise ValidationException(
                f"{operation.value} is not available with {credential_source.value} credentials"
            )

        if spec.needs_order_id and not order_id:
            raise ValidationException("order id is required")

        for field in spec.required_fields:
            if not isinstance(payload, dict) or payload.get(field) in (None, ""):
                raise ValidationException(
                    f"{field} is required", details={"operation": operation.value}
                )

        if credential_source == CredentialSource.CLIENT_SUPPLIED and not client_token:
            raise ValidationException(MISSING_TOKEN_MESSAGE)

    async def _cached_token(self, operation: GetirOperation) -> str:
        try:
            credential = await self.token_manager.ensure_fresh()
        except GetirAuthException as e:
            logger.warning(
                f"No Getir token available for {operation.value}: {e.message}",
                extra={"operation": operation.value, "error": e.to_dict()},
            )
            raise CredentialUnavailableException(
                details={"reason": e.message}
            ) from e
        return credential.token

    async def login(self, payload: Any) -> UpstreamResult:
        """Forward the caller's login body to Getir and relay the answer"""
        return await send_upstream(
            self.http_client,
            "POST",
            f"{self.base_url}{LOGIN_PATH}",
            operation="login",
            json_body=payload if payload is not None else {},
        )

    async def current_token(self) -> Dict[str, Any]:
        """
        Server-side token for clients that call Getir themselves.

        Raises:
            CredentialUnavailableException: If no token could be obtained
        """
        try:
            credential = await self.token_manager.ensure_fresh()
        except GetirAuthException as e:
            raise CredentialUnavailableException(details={"reason": e.message}) from e

        return {
            "token": credential.token,
            "restaurantId": credential.restaurant_id,
            "expiresAt": credential.expires_at.isoformat(),
        }


_proxy_instance: Optional[GetirActionProxy] = None


def get_getir_proxy() -> GetirActionProxy:
    """
    Get or create GetirActionProxy singleton instance.

    Returns:
        GetirActionProxy sharing the HTTP client and token manager
    """
    global _proxy_instance
    if _proxy_instance is None:
        _proxy_instance = GetirActionProxy(
            http_client=get_http_client(),
            base_url=settings.getir_api_base_url,
            token_manager=get_token_manager(),
        )
    return _proxy_instance


def reset_getir_proxy() -> None:
    global _proxy_instance
    _proxy_instance = None
