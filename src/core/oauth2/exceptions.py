"""OAuth2-specific exceptions."""

from core.errors.exceptions import GatewayError
from core.types import ErrorCategory


class OAuth2Error(GatewayError):
    """Base exception for OAuth2 operations."""

    category = ErrorCategory.AUTH


class CredentialRefreshError(OAuth2Error):
    """Token endpoint rejected the refresh or could not be reached."""


class InvalidConfigurationError(OAuth2Error):
    """OAuth2 provider configuration is invalid."""

    category = ErrorCategory.PERMANENT


__all__ = [
    "OAuth2Error",
    "CredentialRefreshError",
    "InvalidConfigurationError",
]
