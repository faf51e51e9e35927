"""Credential manager with proactive and reactive refresh."""

import asyncio
import logging
import threading
from typing import Any

from core.oauth2.models import Credential
from core.oauth2.providers.base import BaseCredentialProvider
from core.resilience.clock import SYSTEM_CLOCK, Clock

logger = logging.getLogger(__name__)

# Proactive refresh threshold (50 minutes after issuance)
DEFAULT_MAX_AGE_SECONDS = 50 * 60


class CredentialManager:
    """
    Owns the single bearer credential for a process.

    The credential is created empty, populated on first use, and refreshed in
    place when it reaches max_age_seconds or when the remote API rejects it.

    Thread-safe reads of the held credential; refreshes are serialized with an
    asyncio lock so concurrent stale checks cause one token-endpoint round trip.

    Usage:
        provider = RefreshTokenProvider(RefreshTokenConfig(...))
        manager = CredentialManager(provider)

        token = await manager.get_token()          # refreshes if empty or stale
        token = await manager.refresh(token)       # after a 401 on `token`
    """

    def __init__(
        self,
        provider: BaseCredentialProvider,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        clock: Clock | None = None,
    ):
        """
        Initialize credential manager.

        Args:
            provider: Performs the token endpoint exchange
            max_age_seconds: Age at which the credential is proactively refreshed
            clock: Time source (defaults to the system clock)
        """
        self._provider = provider
        self._clock = clock or SYSTEM_CLOCK
        self._credential: Credential | None = None
        self._lock = threading.Lock()
        self._refresh_lock = asyncio.Lock()
        self.max_age_seconds = max_age_seconds
        self.refresh_count = 0

        logger.debug(
            f"Initialized CredentialManager with {max_age_seconds}s proactive refresh threshold"
        )

    @property
    def credential(self) -> Credential | None:
        with self._lock:
            return self._credential

    def _needs_refresh(self, credential: Credential | None) -> bool:
        return credential is None or credential.is_stale(
            self._clock.now(), self.max_age_seconds
        )

    async def get_token(self) -> str:
        """
        Get the access token, refreshing first if none is held or it is stale.

        Returns:
            Access token string

        Raises:
            CredentialRefreshError: If a needed refresh fails
        """
        credential = self.credential
        if not self._needs_refresh(credential):
            return credential.access_token

        async with self._refresh_lock:
            # Double-check after acquiring lock (another coroutine may have refreshed)
            credential = self.credential
            if not self._needs_refresh(credential):
                logger.debug("Credential was refreshed by another coroutine")
                return credential.access_token

            if credential is None:
                logger.info("No credential held, refreshing before first call")
            else:
                logger.info(
                    "Credential reached proactive refresh threshold",
                    extra={"credential_age_seconds": round(credential.age(self._clock.now()), 1)},
                )
            return (await self._do_refresh()).access_token

    async def refresh(self, rejected_token: str | None = None) -> str:
        """
        Force a refresh.

        Args:
            rejected_token: Token the remote API just rejected. If the held
                token already differs, another caller refreshed in the meantime
                and that token is returned without a network call.

        Returns:
            New access token

        Raises:
            CredentialRefreshError: If the refresh fails
        """
        async with self._refresh_lock:
            credential = self.credential
            if (
                rejected_token is not None
                and credential is not None
                and credential.access_token != rejected_token
            ):
                logger.debug("Rejected credential already replaced by another coroutine")
                return credential.access_token

            return (await self._do_refresh()).access_token

    async def _do_refresh(self) -> Credential:
        # Caller holds _refresh_lock; failures propagate unchanged
        new_credential = await self._provider.refresh(issued_at=self._clock.now())

        with self._lock:
            self._credential = new_credential
            self.refresh_count += 1

        return new_credential

    def clear(self) -> None:
        """Drop the held credential; the next call refreshes."""
        with self._lock:
            self._credential = None
        logger.debug("Cleared credential")

    def get_credential_info(self) -> dict[str, Any] | None:
        """
        Get information about the held credential for diagnostics.

        Returns:
            Dict with credential info, or None if no credential held
        """
        with self._lock:
            credential = self._credential
        if credential is None:
            return None

        now = self._clock.now()
        return {
            "provider_name": self._provider.provider_name,
            "issued_at": credential.issued_at,
            "age_seconds": credential.age(now),
            "is_stale": credential.is_stale(now, self.max_age_seconds),
            "refresh_count": self.refresh_count,
        }

    async def close(self) -> None:
        """Close the provider's resources."""
        try:
            await self._provider.close()
        except Exception as e:
            logger.warning(
                f"Error closing provider '{self._provider.provider_name}': {e}"
            )
        logger.info("CredentialManager closed")


__all__ = [
    "CredentialManager",
    "DEFAULT_MAX_AGE_SECONDS",
]
