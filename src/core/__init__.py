"""
Core library: reusable, API-agnostic components.

Modules:
    oauth2      - Credential model, refresh-token provider, credential manager
    resilience  - Admission limiter, clock abstraction, Retry-After/backoff policy
    http        - aiohttp transport for outbound call descriptors
    logging     - Structured JSON logging with context propagation
    errors      - Exception hierarchy and HTTP/rate-limit classification

Design Principles:
    - No knowledge of the business endpoints being called
    - All time-dependent components take an injectable clock
    - Async-first
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
