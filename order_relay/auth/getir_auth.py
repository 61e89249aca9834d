"""
Getir Token Exchange

Trades the static application and restaurant secrets for a short-lived Getir
token. The exchange never touches the credential cache; storing the result is
the token manager's job.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx

from order_relay.models.getir import LOGIN_PATH, Credential, PartnerSecrets
from order_relay.utils.exceptions import GetirAuthException
from order_relay.utils.logging_config import get_logger, mask_secret

logger = get_logger(__name__)

DEFAULT_TOKEN_VALIDITY = timedelta(minutes=55)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GetirTokenAcquirer:
    """Performs the Getir login exchange"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        validity: timedelta = DEFAULT_TOKEN_VALIDITY,
        clock: Callable[[], datetime] = utc_now,
        default_restaurant_id: Optional[str] = None,
    ):
        self.http_client = http_client
        self.login_url = f"{base_url.rstrip('/')}{LOGIN_PATH}"
        self.validity = validity
        self.clock = clock
        self.default_restaurant_id = default_restaurant_id

    async def acquire(self, secrets: PartnerSecrets) -> Credential:
        """
        Exchange partner secrets for a token.

        Args:
            secrets: Application and restaurant secret keys

        Returns:
            Credential expiring ``validity`` after acquisition

        Raises:
            GetirAuthException: On a non-success response, an unusable body,
                or a network failure
        """
        logger.info(
            "Requesting Getir token",
            extra={
                "login_url": self.login_url,
                "app_secret": mask_secret(secrets.app_secret_key.get_secret_value()),
            },
        )

        try:
            response = await self.http_client.post(
                self.login_url,
                json=secrets.login_body(),
                headers={"Content-Type": "application/json"},
            )
        except httpx.RequestError as e:
            logger.error(f"Network error during Getir login: {e}")
            raise GetirAuthException(
                f"Network error during Getir login: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        if not response.is_success:
            logger.error(
                f"Getir login failed with HTTP {response.status_code}",
                extra={
                    "status_code": response.status_code,
                    "response_body": response.text,
                },
            )
            raise GetirAuthException(
                f"Getir token request failed with HTTP {response.status_code}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GetirAuthException(
                "Invalid Getir login response: body is not JSON",
                upstream_status=response.status_code,
                upstream_body=response.text,
            ) from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise GetirAuthException(
                "Invalid Getir login response: missing token",
                upstream_status=response.status_code,
            )

        acquired_at = self.clock()
        credential = Credential(
            token=token,
            acquired_at=acquired_at,
            expires_at=acquired_at + self.validity,
            restaurant_id=data.get("restaurantId") or self.default_restaurant_id,
        )

        logger.info(
            "Acquired Getir token",
            extra={
                "token": mask_secret(token),
                "expires_at": credential.expires_at.isoformat(),
            },
        )
        return credential
