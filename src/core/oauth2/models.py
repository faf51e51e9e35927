"""OAuth2 data models and configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Credential:
    """
    Bearer credential with its issuance time.

    Immutable: a refresh replaces the whole object, so a reader never sees a
    token from one refresh paired with the issuance time of another.

    Attributes:
        access_token: The access token string
        issued_at: Wall-clock epoch seconds when the token was obtained
        expires_in: Lifetime reported by the token endpoint, if any (informational)
        api_domain: API domain reported by the token endpoint, if any
    """

    access_token: str
    issued_at: float
    expires_in: int | None = None
    api_domain: str | None = None

    @classmethod
    def from_response(cls, response: dict, issued_at: float) -> "Credential":
        """
        Create credential from a token endpoint response.

        Args:
            response: Decoded token response containing access_token
            issued_at: Epoch seconds to record as issuance time

        Returns:
            Credential instance

        Raises:
            KeyError: If access_token is missing
        """
        expires_in = response.get("expires_in")
        return cls(
            access_token=response["access_token"],
            issued_at=issued_at,
            expires_in=int(expires_in) if expires_in is not None else None,
            api_domain=response.get("api_domain"),
        )

    def age(self, now: float) -> float:
        """Seconds elapsed since issuance."""
        return now - self.issued_at

    def is_stale(self, now: float, max_age_seconds: float) -> bool:
        """
        Check if credential should be proactively refreshed.

        Freshness is inferred purely from elapsed time since issuance.

        Args:
            now: Current wall-clock epoch seconds
            max_age_seconds: Age at which the credential is considered stale

        Returns:
            True if age has reached max_age_seconds
        """
        return self.age(now) >= max_age_seconds


@dataclass
class RefreshTokenConfig:
    """
    Refresh-token grant configuration.

    Attributes:
        token_url: Token endpoint URL
        client_id: OAuth2 client ID
        client_secret: OAuth2 client secret
        refresh_token: Long-lived refresh secret
        timeout_seconds: Timeout for the token endpoint round trip
    """

    token_url: str
    client_id: str
    client_secret: str
    refresh_token: str
    timeout_seconds: float = 30.0

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return (
            f"RefreshTokenConfig(token_url={self.token_url!r}, "
            f"client_id={self.client_id!r}, client_secret='***', refresh_token='***')"
        )


__all__ = ["Credential", "RefreshTokenConfig"]
