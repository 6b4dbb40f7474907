"""
Async JSON-RPC transport for TrustRouter.

Wraps a single EVM JSON-RPC endpoint behind ``httpx.AsyncClient``: deadline
per call, backoff on rate limiting, and error responses mapped onto typed
exceptions.
"""

import asyncio
import itertools
import random
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import httpx

from trustrouter.abi import strip_0x
from trustrouter.exceptions import (
    CallRevertedError,
    RpcConnectionError,
    RpcError,
    RpcTimeoutError,
)
from trustrouter.logging import log_rpc_call, log_rpc_result, redact_url

# JSON-RPC error code geth and most providers use for execution reverts
_REVERT_ERROR_CODE = 3


@dataclass
class RetryConfig:
    """
    Configuration for retrying rate-limited requests.

    Only HTTP statuses in ``retry_on`` are retried. Timeouts, connection
    failures and reverts are returned to the caller on the first occurrence.
    """

    max_retries: int = 2
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 503])
    respect_retry_after: bool = True
    max_backoff: float = 10.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)


class RpcTransport:
    """
    JSON-RPC transport bound to one endpoint URL.

    Handles:
    - A hard deadline per request (``timeout`` seconds, default 10)
    - Exponential backoff with jitter for 429/503 responses
    - Retry-After header respect for rate limiting
    - Mapping JSON-RPC error objects onto ``CallRevertedError`` / ``RpcError``
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        retry_config: RetryConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            url: JSON-RPC endpoint URL
            timeout: Deadline for each request in seconds
            retry_config: Configuration for rate-limit retries
            client: Shared httpx client; the transport will not close it
        """
        self.url = url
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self._request_ids = itertools.count(1)

        if client is None:
            self._client = httpx.AsyncClient(
                timeout=timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    @property
    def display_url(self) -> str:
        return redact_url(self.url)

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RpcTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: JSON-RPC method name
            params: Positional params

        Returns:
            The ``result`` member of the response

        Raises:
            CallRevertedError: The node reported an execution revert
            RpcTimeoutError: The deadline passed
            RpcConnectionError: Network failure or unusable HTTP response
            RpcError: Any other JSON-RPC error object
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params or [],
        }

        async def make_request() -> httpx.Response:
            return await self._client.post(self.url, json=payload)

        return await self._execute_with_retry(method, params, make_request)

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        """
        Execute a read-only contract call.

        Returns:
            Return data as hex without the ``0x`` prefix

        Raises:
            CallRevertedError: On revert or empty return data (no contract code)
        """
        result = await self.request("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise RpcError(f"Malformed eth_call result from {self.display_url}: {result!r}")
        if result in ("0x", "0x0"):
            raise CallRevertedError(f"Empty return data from {to}")
        return strip_0x(result)

    async def block_number(self) -> int:
        """Return the latest block number."""
        result = await self.request("eth_blockNumber")
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise RpcError(
                f"Malformed eth_blockNumber result from {self.display_url}: {result!r}"
            ) from None

    async def _execute_with_retry(
        self,
        method: str,
        params: list[Any] | None,
        request_fn: Callable[[], Coroutine[Any, Any, httpx.Response]],
    ) -> Any:
        """
        Execute a request, retrying only on rate-limit statuses.

        Args:
            method: JSON-RPC method (for logging)
            params: JSON-RPC params (for logging)
            request_fn: Async function that makes the HTTP request

        Returns:
            Parsed JSON-RPC result
        """
        for attempt in range(self.retry_config.max_retries + 1):
            log_rpc_call(self.url, method, params)
            started = time.monotonic()

            try:
                response = await asyncio.wait_for(request_fn(), timeout=self.timeout)
            except (httpx.TimeoutException, asyncio.TimeoutError) as e:
                log_rpc_result(self.url, method, error="timeout")
                raise RpcTimeoutError(
                    f"{method} timed out after {self.timeout}s at {self.display_url}"
                ) from e
            except (httpx.RequestError, httpx.InvalidURL, ValueError) as e:
                log_rpc_result(self.url, method, error=str(e))
                raise RpcConnectionError(
                    f"{method} failed at {self.display_url}: {type(e).__name__}"
                ) from e

            elapsed_ms = (time.monotonic() - started) * 1000
            log_rpc_result(self.url, method, response.status_code, elapsed_ms=elapsed_ms)

            if response.status_code < 400:
                return self._parse_rpc_response(method, response)

            if not self._should_retry(response.status_code, attempt):
                raise RpcConnectionError(
                    f"{method} got HTTP {response.status_code} from {self.display_url}"
                )

            retry_after = response.headers.get("Retry-After")
            await asyncio.sleep(self._get_backoff_time(attempt, retry_after))

        raise RpcConnectionError(f"{method} exhausted retries at {self.display_url}")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return status_code in self.retry_config.retry_on

    def _get_backoff_time(self, attempt: int, retry_after: str | None) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present. The result never exceeds ``max_backoff``.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of Retry-After header (if present)

        Returns:
            Time to wait in seconds
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return min(float(retry_after), self.retry_config.max_backoff)
            except ValueError:
                pass  # HTTP-date form; fall through to exponential backoff

        base_wait = self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        return min(wait_time, self.retry_config.max_backoff)

    def _parse_rpc_response(self, method: str, response: httpx.Response) -> Any:
        """
        Extract the result from a JSON-RPC response body.

        Args:
            method: JSON-RPC method (for error messages)
            response: HTTP response with a success status

        Returns:
            The ``result`` value
        """
        try:
            data = response.json()
        except ValueError:
            raise RpcConnectionError(
                f"{method} returned a non-JSON body from {self.display_url}"
            ) from None

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned an unexpected payload from {self.display_url}")

        error = data.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise RpcError(f"{method} failed: {error!r}")
            code = error.get("code")
            message = str(error.get("message", "unknown error"))
            if code == _REVERT_ERROR_CODE or "revert" in message.lower():
                raise CallRevertedError(f"{method} reverted: {message}")
            raise RpcError(f"{method} failed with code {code}: {message}")

        if "result" not in data:
            raise RpcError(f"{method} response has no result from {self.display_url}")

        return data["result"]
