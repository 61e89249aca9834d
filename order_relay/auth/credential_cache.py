"""
Getir Credential Cache

Holds at most one Getir credential. The credential is an immutable record and
is only ever swapped as a whole, so readers never see a half-written token.
"""

from datetime import datetime
from typing import Optional

from order_relay.models.getir import Credential
from order_relay.utils.logging_config import get_logger

logger = get_logger(__name__)


class CredentialCache:
    """In-memory slot for the current Getir credential"""

    def __init__(self, credential: Optional[Credential] = None):
        self._credential = credential

    def get(self) -> Optional[Credential]:
        return self._credential

    def get_valid(self, now: datetime) -> Optional[Credential]:
        """Return the cached credential if it has not expired at ``now``"""
        credential = self._credential
        if credential is None or credential.is_expired(now):
            return None
        return credential

    def replace(self, credential: Credential) -> None:
        self._credential = credential
        logger.debug(
            "Cached Getir credential replaced",
            extra={"expires_at": credential.expires_at.isoformat()},
        )
