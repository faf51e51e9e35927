"""Credential provider implementations."""

from core.oauth2.providers.base import BaseCredentialProvider
from core.oauth2.providers.refresh_token import RefreshTokenProvider

__all__ = ["BaseCredentialProvider", "RefreshTokenProvider"]
