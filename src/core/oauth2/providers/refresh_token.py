"""Refresh-token grant provider."""

import asyncio
import logging

import aiohttp

from core.errors.classifiers import truncate_body
from core.oauth2.exceptions import CredentialRefreshError, InvalidConfigurationError
from core.oauth2.models import Credential, RefreshTokenConfig
from core.oauth2.providers.base import BaseCredentialProvider

logger = logging.getLogger(__name__)


class RefreshTokenProvider(BaseCredentialProvider):
    """
    Exchanges a long-lived refresh token for a new access token.

    Issues POST <token_url>?grant_type=refresh_token&refresh_token=...&client_id=...&client_secret=...
    and expects a JSON body containing access_token. Failures are never
    retried here; they surface as CredentialRefreshError.
    """

    def __init__(
        self,
        config: RefreshTokenConfig,
        provider_name: str = "refresh_token",
        session: aiohttp.ClientSession | None = None,
    ):
        super().__init__(provider_name)

        if not all([config.token_url, config.client_id, config.client_secret, config.refresh_token]):
            raise InvalidConfigurationError(
                "token_url, client_id, client_secret, and refresh_token are required"
            )

        self.config = config
        self._session = session
        self._owns_session = session is None

        logger.debug(
            f"Initialized refresh-token provider '{provider_name}'",
            extra={"http_url": config.token_url},
        )

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP client session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    def _request_params(self) -> dict[str, str]:
        return {
            "grant_type": "refresh_token",
            "refresh_token": self.config.refresh_token,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }

    async def refresh(self, issued_at: float) -> Credential:
        """
        Refresh the access token.

        Returns:
            Credential stamped with issued_at

        Raises:
            CredentialRefreshError: On non-2xx, network error, or a body
                without access_token
        """
        session = await self._ensure_session()

        try:
            async with session.post(
                self.config.token_url,
                params=self._request_params(),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
            ) as response:
                if not 200 <= response.status < 300:
                    error_text = truncate_body(await response.text(), 200)
                    logger.error(
                        f"Token refresh failed for '{self.provider_name}': "
                        f"HTTP {response.status}",
                        extra={"http_status": response.status, "error": error_text},
                    )
                    raise CredentialRefreshError(
                        f"Token refresh failed: HTTP {response.status}",
                        status_code=response.status,
                        response_body=error_text,
                    )

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise CredentialRefreshError(
                        "Token refresh failed: response is not valid JSON", cause=e
                    ) from e

        except aiohttp.ClientError as e:
            logger.error(
                f"HTTP error during token refresh for '{self.provider_name}': {e}"
            )
            raise CredentialRefreshError("Token refresh failed: HTTP error", cause=e) from e
        except TimeoutError as e:
            logger.error(f"Token refresh timed out for '{self.provider_name}'")
            raise CredentialRefreshError(
                f"Token refresh timed out after {self.config.timeout_seconds}s", cause=e
            ) from e

        if not isinstance(data, dict) or not data.get("access_token"):
            # Token endpoint reports some failures as 200 with an "error" field
            reason = data.get("error") if isinstance(data, dict) else None
            logger.error(
                f"Token refresh for '{self.provider_name}' returned no access_token",
                extra={"error": reason},
            )
            raise CredentialRefreshError(
                f"Token refresh failed: {reason or 'access_token missing from response'}"
            )

        logger.info(
            "Access token refreshed successfully",
            extra={"provider": self.provider_name, "expires_in": data.get("expires_in")},
        )
        return Credential.from_response(data, issued_at=issued_at)

    async def close(self) -> None:
        """Close HTTP client session if this provider created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            await asyncio.sleep(0)
        self._session = None


__all__ = ["RefreshTokenProvider"]
