"""
Getir Token Manager

Keeps a valid Getir token in the credential cache for the cached-token routes.

Refreshes happen on demand (the cached token is missing or expired) and on a
fixed background schedule. Both paths go through one single-flight slot: while
an acquisition is running, every other caller awaits that same task instead of
starting its own login call.
"""

import asyncio
import contextlib
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from order_relay.auth.credential_cache import CredentialCache
from order_relay.auth.getir_auth import GetirTokenAcquirer, utc_now
from order_relay.config import settings
from order_relay.models.getir import Credential, PartnerSecrets
from order_relay.services.http_client import get_http_client
from order_relay.utils.exceptions import GetirAuthException
from order_relay.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(minutes=55)


class GetirTokenManager:
    """Single-flight guard around the Getir credential cache"""

    def __init__(
        self,
        acquirer: GetirTokenAcquirer,
        secrets: Optional[PartnerSecrets],
        cache: Optional[CredentialCache] = None,
        refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.acquirer = acquirer
        self.secrets = secrets
        self.cache = cache or CredentialCache()
        self.refresh_interval = refresh_interval
        self.clock = clock

        self._inflight: Optional[asyncio.Task] = None
        self._background: Optional[asyncio.Task] = None

    @property
    def refresh_in_progress(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def ensure_fresh(self) -> Credential:
        """
        Return a non-expired credential, acquiring one if needed.

        Returns:
            The cached credential, or the result of the refresh it triggered

        Raises:
            GetirAuthException: If the acquisition this call waited on failed
        """
        credential = self.cache.get_valid(self.clock())
        if credential is not None:
            return credential

        logger.info("Getir token missing or expired, refreshing")
        return await self.refresh()

    async def refresh(self) -> Credential:
        """
        Acquire a new credential, joining an in-flight acquisition if any.

        The shared task is shielded so that a caller being cancelled does not
        cancel the acquisition other callers are waiting on.
        """
        task = self._inflight
        if task is None:
            task = asyncio.create_task(self._acquire_and_store())
            self._inflight = task
            task.add_done_callback(self._on_refresh_done)
        else:
            logger.debug("Joining in-flight Getir token refresh")

        return await asyncio.shield(task)

    async def _acquire_and_store(self) -> Credential:
        if self.secrets is None:
            raise GetirAuthException("Getir secrets are not configured")

        credential = await self.acquirer.acquire(self.secrets)
        self.cache.replace(credential)
        return credential

    def _on_refresh_done(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        # Awaiting callers receive the failure; mark it retrieved for the
        # case where every waiter was cancelled.
        if not task.cancelled():
            task.exception()

    def start_background_refresh(self) -> None:
        """Refresh now and then on every interval until stopped"""
        if self._background is not None and not self._background.done():
            return

        self._background = asyncio.create_task(self._refresh_loop())
        logger.info(
            "Started background Getir token refresh",
            extra={"interval_seconds": self.refresh_interval.total_seconds()},
        )

    async def stop_background_refresh(self) -> None:
        task = self._background
        self._background = None
        if task is None:
            return

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Stopped background Getir token refresh")

    async def _refresh_loop(self) -> None:
        interval = self.refresh_interval.total_seconds()
        while True:
            try:
                await self.refresh()
            except Exception as e:
                # Failures wait for the next tick; on-demand refreshes still
                # run in between.
                logger.error(
                    f"Background Getir token refresh failed: {e}",
                    extra={"error": str(e), "error_type": type(e).__name__},
                )
            await asyncio.sleep(interval)

    def status(self) -> Dict[str, Any]:
        """Describe the cache state without triggering a refresh"""
        credential = self.cache.get()
        now = self.clock()
        return {
            "cached": credential is not None,
            "valid": credential is not None and not credential.is_expired(now),
            "expires_at": credential.expires_at.isoformat() if credential else None,
            "refresh_in_progress": self.refresh_in_progress,
            "background_refresh": self._background is not None
            and not self._background.done(),
        }


def build_partner_secrets() -> Optional[PartnerSecrets]:
    """Partner secrets from settings, or None when they are not configured"""
    if settings.missing_getir_secrets():
        return None
    return PartnerSecrets(
        app_secret_key=settings.getir_app_secret,
        restaurant_secret_key=settings.getir_restaurant_secret,
    )


_token_manager_instance: Optional[GetirTokenManager] = None


def get_token_manager() -> GetirTokenManager:
    """
    Get or create GetirTokenManager singleton instance.

    Returns:
        GetirTokenManager wired to the shared HTTP client and settings
    """
    global _token_manager_instance
    if _token_manager_instance is None:
        acquirer = GetirTokenAcquirer(
            http_client=get_http_client(),
            base_url=settings.getir_api_base_url,
            validity=settings.getir_token_validity,
            default_restaurant_id=settings.getir_restaurant_id,
        )
        _token_manager_instance = GetirTokenManager(
            acquirer=acquirer,
            secrets=build_partner_secrets(),
            refresh_interval=settings.getir_token_refresh_interval,
        )
    return _token_manager_instance


async def close_token_manager() -> None:
    """Stop the background refresh and drop the singleton"""
    global _token_manager_instance
    if _token_manager_instance is not None:
        await _token_manager_instance.stop_background_refresh()
        _token_manager_instance = None
