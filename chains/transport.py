"""
chains/transport.py - JSON-RPC transport for provider checks.

Performs one JSON-RPC call against one provider and always returns a
RequestOutcome:
- Basic and token authentication
- Per-request timeout
- Shared connection pool
- Latency tracking per endpoint

invoke() never raises; every failure is reported inside the outcome.
"""

import json
import time
from dataclasses import dataclass
from typing import Protocol, Sequence

import httpx

from core.constants import AuthType, ErrorCode, JSONRPC_VERSION
from core.exceptions import TransportError
from core.logging import get_logger
from core.models import Provider, RequestOutcome

logger = get_logger(__name__)


class MethodCaller(Protocol):
    """Capability the validation core depends on."""

    async def invoke(
        self,
        provider: Provider,
        method: str,
        params: Sequence,
        timeout: float,
    ) -> RequestOutcome:
        ...


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


def build_request(
    provider: Provider,
    method: str,
    params: Sequence,
    request_id: int = 1,
) -> tuple[httpx.URL, dict, tuple[str, str] | None]:
    """
    Build URL, JSON-RPC payload and auth for a provider.

    Token auth replaces the URL query string with the token.

    Returns:
        (url, payload, basic_auth_or_None)
    """
    url = httpx.URL(provider.url)
    auth = None

    if provider.auth_type is AuthType.BASIC:
        auth = (provider.auth_login, provider.auth_password)
    elif provider.auth_type is AuthType.TOKEN:
        url = url.copy_with(query=provider.auth_token.encode("utf-8"))

    payload = {
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "params": list(params),
        "id": request_id,
    }
    return url, payload, auth


class RPCTransport:
    """
    httpx-based MethodCaller.

    The HTTP client is created lazily and shared by all calls; pass an
    existing httpx.AsyncClient to reuse a pool (or a mock transport in tests).
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        max_connections: int = 100,
    ):
        self._client = client
        self._owns_client = client is None
        self.max_connections = max_connections
        self._request_id = 0
        self.stats: dict[str, RPCStats] = {}

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_connections=self.max_connections),
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "RPCTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def _stats_for(self, url: str) -> RPCStats:
        if url not in self.stats:
            self.stats[url] = RPCStats(url=url)
        return self.stats[url]

    def _fail(
        self,
        stats: RPCStats,
        start: float,
        code: ErrorCode,
        message: str,
        details: dict,
    ) -> RequestOutcome:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        stats.failed_requests += 1
        stats.last_error = message
        logger.debug(
            f"RPC call failed: {message}",
            extra={"context": {**details, "elapsed_ms": elapsed_ms}},
        )
        return RequestOutcome.failed(
            TransportError(message, code=code, details=details),
            elapsed_ms=elapsed_ms,
        )

    async def invoke(
        self,
        provider: Provider,
        method: str,
        params: Sequence,
        timeout: float,
    ) -> RequestOutcome:
        """
        Make one JSON-RPC call.

        Args:
            provider: Target provider
            method: RPC method name
            params: Method parameters
            timeout: Request timeout in seconds

        Returns:
            RequestOutcome; success means HTTP 2xx with a JSON body.
            The body is returned verbatim for the caller to interpret.
        """
        start = time.monotonic()
        stats = self._stats_for(provider.url)
        stats.total_requests += 1
        details = {"provider": provider.name, "method": method}

        try:
            url, payload, auth = build_request(
                provider, method, params, self._next_request_id()
            )
            resp = await self._get_client().post(
                url,
                json=payload,
                auth=auth,
                timeout=httpx.Timeout(timeout),
            )
        except httpx.TimeoutException as e:
            return self._fail(
                stats, start, ErrorCode.TRANSPORT_TIMEOUT,
                f"request timed out: {e!r}", details,
            )
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, TypeError) as e:
            return self._fail(
                stats, start, ErrorCode.TRANSPORT_ERROR,
                f"request failed: {e}", details,
            )

        if not resp.is_success:
            return self._fail(
                stats, start, ErrorCode.TRANSPORT_BAD_STATUS,
                f"unexpected status code: {resp.status_code}",
                {**details, "status_code": resp.status_code},
            )

        body = resp.text
        try:
            json.loads(body)
        except (ValueError, RecursionError) as e:
            return self._fail(
                stats, start, ErrorCode.TRANSPORT_BAD_BODY,
                f"malformed JSON body: {e}", details,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stats.successful_requests += 1
        stats.total_latency_ms += elapsed_ms
        return RequestOutcome.ok(body, elapsed_ms=elapsed_ms)

    def get_stats_summary(self) -> dict:
        """Get statistics summary for all endpoints."""
        return {
            url: {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
