"""
Credential lifecycle for a refresh-token protected API.

Holds a single bearer credential per process, refreshes it proactively once
it reaches its maximum age, and on demand after the remote API rejects it.

Basic Usage:
    from core.oauth2 import CredentialManager, RefreshTokenConfig, RefreshTokenProvider

    provider = RefreshTokenProvider(
        RefreshTokenConfig(
            token_url="https://accounts.zoho.com/oauth/v2/token",
            client_id=os.getenv("ZOHO_CLIENT_ID"),
            client_secret=os.getenv("ZOHO_CLIENT_SECRET"),
            refresh_token=os.getenv("ZOHO_REFRESH_TOKEN"),
        )
    )
    manager = CredentialManager(provider)

    # Get token (refreshed when empty or older than 50 minutes)
    token = await manager.get_token()
"""

from core.oauth2.exceptions import (
    CredentialRefreshError,
    InvalidConfigurationError,
    OAuth2Error,
)
from core.oauth2.manager import DEFAULT_MAX_AGE_SECONDS, CredentialManager
from core.oauth2.models import Credential, RefreshTokenConfig
from core.oauth2.providers import BaseCredentialProvider, RefreshTokenProvider

__all__ = [
    # Manager
    "CredentialManager",
    "DEFAULT_MAX_AGE_SECONDS",
    # Providers
    "BaseCredentialProvider",
    "RefreshTokenProvider",
    # Models
    "Credential",
    "RefreshTokenConfig",
    # Exceptions
    "OAuth2Error",
    "CredentialRefreshError",
    "InvalidConfigurationError",
]
