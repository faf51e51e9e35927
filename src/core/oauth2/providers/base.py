"""Base credential provider interface."""

import logging
from abc import ABC, abstractmethod

from core.oauth2.models import Credential

logger = logging.getLogger(__name__)


class BaseCredentialProvider(ABC):
    """
    Abstract base class for credential providers.

    A provider performs the network exchange that yields a new Credential.
    The CredentialManager decides when to call it.
    """

    def __init__(self, provider_name: str):
        """
        Initialize provider.

        Args:
            provider_name: Identifier used in logs
        """
        self.provider_name = provider_name

    @abstractmethod
    async def refresh(self, issued_at: float) -> Credential:
        """
        Obtain a new credential.

        Args:
            issued_at: Epoch seconds to stamp on the new credential

        Returns:
            New Credential

        Raises:
            CredentialRefreshError: If the exchange fails
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the provider."""
        return None


__all__ = ["BaseCredentialProvider"]
