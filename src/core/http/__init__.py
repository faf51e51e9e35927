"""Async HTTP transport for outbound API calls."""

from core.http.transport import (
    AiohttpTransport,
    ApiResponse,
    CallDescriptor,
    ResponseType,
    Transport,
)

__all__ = [
    "AiohttpTransport",
    "ApiResponse",
    "CallDescriptor",
    "ResponseType",
    "Transport",
]
