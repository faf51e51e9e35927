"""
Core HTTP transport using aiohttp.

Sends one CallDescriptor and returns the raw response for every HTTP
status. It knows nothing about credentials, pacing or retries: the gateway
replays a call simply by sending the same descriptor again with new headers.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import aiohttp

from core.errors.exceptions import TransportError

logger = logging.getLogger(__name__)


class ResponseType(Enum):
    """Expected response body type."""

    JSON = "json"
    BINARY = "binary"


@dataclass(frozen=True)
class CallDescriptor:
    """
    One logical HTTP request.

    Immutable so a replay after a recoverable failure sends exactly the same
    method, path, parameters and body.
    """

    method: str
    path: str
    params: Mapping[str, Any] | None = None
    json_body: Any = None
    response_type: ResponseType = ResponseType.JSON

    def url_for(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/{self.path.lstrip('/')}"


@dataclass
class ApiResponse:
    """Response from one HTTP attempt."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)  # lower-cased names
    body: bytes = b""
    url: str = ""
    data: Any = None  # decoded JSON payload, set by the gateway on success

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """
        Decode body as JSON.

        Returns:
            Decoded value, or None for an empty body

        Raises:
            ValueError: If the body is not valid JSON
        """
        if not self.body.strip():
            return None
        return json.loads(self.body)


class Transport(Protocol):
    """Protocol for sending a call descriptor."""

    async def send(self, descriptor: CallDescriptor, headers: Mapping[str, str]) -> ApiResponse:
        ...

    async def close(self) -> None:
        ...


class AiohttpTransport:
    """
    aiohttp-backed transport with a pooled session.

    Network errors and timeouts raise TransportError; every HTTP status,
    including 4xx/5xx, is returned as an ApiResponse.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30,
        max_concurrent: int = 20,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else ""

        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(
                f"AiohttpTransport base_url must start with http:// or https://, got: {base_url!r}"
            )

        self.timeout_seconds = timeout_seconds
        self.max_concurrent = max_concurrent
        self._session = session
        self._owns_session = session is None
        self._closed = False

    async def __aenter__(self) -> "AiohttpTransport":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise RuntimeError("AiohttpTransport is closed, cannot create new session")
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_concurrent,
                limit_per_host=self.max_concurrent,
            )
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        self._closed = True
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            await asyncio.sleep(0)
        self._session = None

    async def send(self, descriptor: CallDescriptor, headers: Mapping[str, str]) -> ApiResponse:
        """
        Send one attempt of a call.

        Args:
            descriptor: The call to send
            headers: Per-attempt headers (Authorization, Accept)

        Returns:
            ApiResponse for any HTTP status

        Raises:
            TransportError: On connection failure or timeout
        """
        session = await self._ensure_session()
        url = descriptor.url_for(self.base_url)

        try:
            async with session.request(
                descriptor.method,
                url,
                params=dict(descriptor.params) if descriptor.params else None,
                json=descriptor.json_body,
                headers=dict(headers),
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                body = await response.read()
                return ApiResponse(
                    status=response.status,
                    headers={k.lower(): v for k, v in response.headers.items()},
                    body=body,
                    url=url,
                )

        except TimeoutError as e:
            raise TransportError(
                f"Timeout after {self.timeout_seconds}s: {descriptor.method} {url}",
                cause=e,
                context={"url": url, "method": descriptor.method},
            ) from e

        except aiohttp.ClientError as e:
            raise TransportError(
                f"Connection error: {descriptor.method} {url}",
                cause=e,
                context={"url": url, "method": descriptor.method},
            ) from e


__all__ = [
    "ResponseType",
    "CallDescriptor",
    "ApiResponse",
    "Transport",
    "AiohttpTransport",
]
