"""
Resilient API gateway: authenticated, paced, self-healing outbound calls.

Every logical call runs through the same state machine:

    Init -> (refresh if empty/stale) -> Attempt1
        Success      -> Done
        Unauthorized -> refresh once -> Attempt2 -> Done / Done(error)
        RateLimited  -> pause + wait -> Attempt2 -> Done / Done(error, annotated)
        Other        -> Done(error)

At most one replay per logical call, so the worst case is two HTTP
attempts plus one token refresh.
"""

import asyncio
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from config.config import GatewayConfig
from core.errors.classifiers import error_from_response, truncate_body
from core.errors.exceptions import GatewayError, RateLimitedError, RemoteApiError, UnauthorizedError
from core.http.transport import (
    AiohttpTransport,
    ApiResponse,
    CallDescriptor,
    ResponseType,
    Transport,
)
from core.logging.context import get_log_context
from core.oauth2.manager import CredentialManager
from core.oauth2.models import RefreshTokenConfig
from core.oauth2.providers.refresh_token import RefreshTokenProvider
from core.resilience.admission import AdmissionLimiter
from core.resilience.backoff import BackoffPolicy
from core.resilience.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_AUTH_SCHEME = "Zoho-oauthtoken"

# Requests slower than this are logged at INFO
SLOW_REQUEST_SECONDS = 2.0


class AttemptKind(Enum):
    """Which attempt of a logical call is in flight."""

    ORIGINAL = "original"
    AFTER_REFRESH = "after_refresh"
    AFTER_RATE_LIMIT = "after_rate_limit"


@dataclass
class AttemptContext:
    """Per-call retry state. Lives for one logical call only."""

    descriptor: CallDescriptor
    kind: AttemptKind = AttemptKind.ORIGINAL
    token: str | None = None
    attempts: int = 0
    last_headers: dict[str, str] = field(default_factory=dict)


class ResilientApiGateway:
    """
    Wraps outbound calls with admission, credential refresh and bounded replay.

    Callers hand over a CallDescriptor and get back the response or a single
    terminal GatewayError; absorbed 401s and rate limits are never visible.

    Usage:
        gateway = ResilientApiGateway.from_config(load_config())
        async with gateway:
            data = await gateway.get("/items", params={"organization_id": org_id})
    """

    def __init__(
        self,
        transport: Transport,
        credentials: CredentialManager,
        limiter: AdmissionLimiter,
        backoff: BackoffPolicy | None = None,
        auth_scheme: str = DEFAULT_AUTH_SCHEME,
        name: str = "inventory_api",
    ):
        self._transport = transport
        self._credentials = credentials
        self._limiter = limiter
        self._backoff = backoff or BackoffPolicy()
        self.auth_scheme = auth_scheme
        self.name = name

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> "ResilientApiGateway":
        """Wire transport, credential manager, limiter and backoff from config."""
        provider = RefreshTokenProvider(
            RefreshTokenConfig(
                token_url=config.token_url,
                client_id=config.client_id,
                client_secret=config.client_secret,
                refresh_token=config.refresh_token,
                timeout_seconds=config.request_timeout_seconds,
            )
        )
        gateway = cls(
            transport=AiohttpTransport(
                config.resource_base_url,
                timeout_seconds=config.request_timeout_seconds,
                max_concurrent=config.max_concurrent,
            ),
            credentials=CredentialManager(provider, clock=clock),
            limiter=AdmissionLimiter(min_gap_seconds=config.min_gap_seconds, clock=clock),
            backoff=BackoffPolicy(
                min_seconds=config.backoff_min_seconds,
                max_seconds=config.backoff_max_seconds,
                max_retry_after_seconds=config.max_retry_after_seconds,
                rng=rng,
                clock=clock,
            ),
            auth_scheme=config.auth_scheme,
        )

        logger.info(
            "ResilientApiGateway initialized",
            extra={
                "api_url": config.resource_base_url,
                "min_gap_ms": config.min_gap_ms,
                "timeout_seconds": config.request_timeout_seconds,
            },
        )
        return gateway

    async def __aenter__(self) -> "ResilientApiGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.close()
        await self._credentials.close()

    @property
    def limiter(self) -> AdmissionLimiter:
        return self._limiter

    @property
    def credentials(self) -> CredentialManager:
        return self._credentials

    @staticmethod
    def _get_context_ids() -> dict[str, str]:
        """Extract non-empty context IDs (trace_id, tool, etc.) for log enrichment."""
        return {k: v for k, v in get_log_context().items() if v}

    def _build_headers(self, descriptor: CallDescriptor, token: str) -> dict[str, str]:
        accept = "*/*" if descriptor.response_type is ResponseType.BINARY else "application/json"
        return {
            "Authorization": f"{self.auth_scheme} {token}",
            "Accept": accept,
        }

    async def request(self, descriptor: CallDescriptor) -> ApiResponse:
        """
        Perform one logical call, authenticated and paced.

        Args:
            descriptor: The call to make; replayed verbatim on recovery

        Returns:
            ApiResponse of the successful attempt (data holds decoded JSON)

        Raises:
            GatewayError: The single terminal error of the logical call
        """
        ctx = AttemptContext(descriptor)

        try:
            return await self._attempt(ctx)

        except UnauthorizedError:
            logger.info(
                "401 received, refreshing credential and replaying",
                extra={
                    **self._get_context_ids(),
                    "api_method": descriptor.method,
                    "api_endpoint": descriptor.path,
                },
            )
            await self._credentials.refresh(rejected_token=ctx.token)
            ctx.kind = AttemptKind.AFTER_REFRESH
            return await self._attempt(ctx)

        except RateLimitedError as e:
            decision = self._backoff.delay_for(ctx.last_headers)
            e.retry_after = decision.seconds
            logger.warning(
                f"Rate limited. Pausing {decision.seconds * 1000:.0f} ms then retrying "
                f"{descriptor.method} {descriptor.path}",
                extra={
                    **self._get_context_ids(),
                    "api_method": descriptor.method,
                    "api_endpoint": descriptor.path,
                    "http_status": e.status_code,
                    "delay_seconds": decision.seconds,
                    "delay_source": decision.source,
                    "server_retry_after": decision.server_retry_after,
                },
            )
            self._limiter.pause(decision.seconds)
            ctx.kind = AttemptKind.AFTER_RATE_LIMIT
            try:
                return await self._attempt(ctx)
            except GatewayError as retry_error:
                retry_error.mark_rate_limited_retry_failed()
                logger.error(
                    "Rate-limited retry also failed",
                    extra={
                        **self._get_context_ids(),
                        "api_method": descriptor.method,
                        "api_endpoint": descriptor.path,
                        "http_status": retry_error.status_code,
                        "error_category": retry_error.category.value,
                    },
                )
                raise

    async def _attempt(self, ctx: AttemptContext) -> ApiResponse:
        """Pre-flight (wait, ensure credential, attach) then send one attempt."""
        descriptor = ctx.descriptor

        await self._limiter.wait()
        ctx.token = await self._credentials.get_token()
        headers = self._build_headers(descriptor, ctx.token)
        ctx.attempts += 1

        logger.debug(
            "API request starting",
            extra={
                **self._get_context_ids(),
                "api_method": descriptor.method,
                "api_endpoint": descriptor.path,
                "attempt": ctx.attempts,
                "attempt_kind": ctx.kind.value,
            },
        )

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        response = await self._transport.send(descriptor, headers)
        duration = loop.time() - start_time
        ctx.last_headers = response.headers

        if not response.ok:
            error = error_from_response(
                response.status, response.body, response.url or descriptor.path, descriptor.method
            )
            logger.warning(
                "API request failed",
                extra={
                    **self._get_context_ids(),
                    "api_method": descriptor.method,
                    "api_endpoint": descriptor.path,
                    "http_status": response.status,
                    "error_category": error.category.value,
                    "attempt": ctx.attempts,
                    "attempt_kind": ctx.kind.value,
                    "response_body": error.response_body,
                    "duration_seconds": round(duration, 3),
                },
            )
            raise error

        if descriptor.response_type is ResponseType.JSON:
            try:
                response.data = response.json()
            except ValueError as e:
                raise RemoteApiError(
                    f"Malformed JSON response ({response.status}): {descriptor.method} {descriptor.path}",
                    cause=e,
                    context={"method": descriptor.method, "path": descriptor.path},
                    status_code=response.status,
                    response_body=truncate_body(response.text()),
                ) from e

        # Successful request -> slide the window
        self._limiter.notify_done()

        log_level = logging.INFO if duration > SLOW_REQUEST_SECONDS else logging.DEBUG
        log_msg = "Slow API request" if duration > SLOW_REQUEST_SECONDS else "API request succeeded"
        logger.log(
            log_level,
            log_msg,
            extra={
                **self._get_context_ids(),
                "api_method": descriptor.method,
                "api_endpoint": descriptor.path,
                "http_status": response.status,
                "attempt": ctx.attempts,
                "duration_seconds": round(duration, 3),
            },
        )
        return response

    async def request_json(self, descriptor: CallDescriptor) -> Any:
        """Perform a call and return its decoded JSON payload (or bytes for binary)."""
        response = await self.request(descriptor)
        if descriptor.response_type is ResponseType.BINARY:
            return response.body
        return response.data

    async def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        response_type: ResponseType = ResponseType.JSON,
    ) -> Any:
        return await self.request_json(
            CallDescriptor("GET", path, params=params, response_type=response_type)
        )

    async def post(
        self,
        path: str,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.request_json(
            CallDescriptor("POST", path, params=params, json_body=json_body)
        )

    async def put(
        self,
        path: str,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.request_json(
            CallDescriptor("PUT", path, params=params, json_body=json_body)
        )

    async def delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request_json(CallDescriptor("DELETE", path, params=params))

    def get_diagnostics(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "limiter": self._limiter.get_stats(),
            "credential": self._credentials.get_credential_info(),
        }


__all__ = [
    "AttemptKind",
    "AttemptContext",
    "ResilientApiGateway",
    "DEFAULT_AUTH_SCHEME",
]
