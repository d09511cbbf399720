"""ApiClient — async HTTP transport toward the storefront REST backend.

Responsibilities:
  - base URL + fixed per-call timeout (10s default)
  - Bearer token from AuthTokenStore; token cleared on 401
  - retry of transient failures (timeout, connection error, 5xx) with
    exponential backoff: 1s, 2s, 4s ... capped, at most API_MAX_ATTEMPTS
    attempts in total. Headers (Idempotency-Key included) are resent
    unchanged on every attempt.
  - mapping of error responses to the AppError taxonomy

Log format (logger "sf.request"):
    INFO [POST] /api/order/api/v1/orders → 202 (23ms)
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from src.sf_common.auth import AuthTokenStore
from src.sf_common.errors import AppError, NetworkError, error_from_response

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("sf.request")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after the given (1-based) failed attempt."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


def is_retryable_status(status: int) -> bool:
    return 500 <= status < 600


class ApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        retry: RetryPolicy | None = None,
        token_store: AuthTokenStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._retry = retry or RetryPolicy()
        self._token_store = token_store
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.request("POST", path, json=json, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a request, retrying transient failures. Returns the decoded JSON body."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        attempt = 0
        while True:
            attempt += 1
            request_headers = dict(headers or {})
            token = await self._token_store.get_token() if self._token_store else None
            if token:
                request_headers["Authorization"] = f"Bearer {token}"

            cause: Exception | None = None
            start = time.perf_counter()
            try:
                response = await self._client.request(
                    method, path, params=query, json=json, headers=request_headers
                )
            except httpx.TimeoutException as exc:
                cause = exc
                error: AppError = NetworkError(f"Request timed out: {method} {path}")
            except httpx.TransportError as exc:
                cause = exc
                error = NetworkError(f"Connection failed: {method} {path}: {exc}")
            else:
                elapsed_ms = (time.perf_counter() - start) * 1000
                request_logger.info(
                    "[%s] %s → %d (%.0fms)", method, path, response.status_code, elapsed_ms
                )
                if response.is_success:
                    return self._decode(response)
                error = error_from_response(response.status_code, self._safe_json(response))
                await self._on_error_status(response.status_code, method, path)
                if not is_retryable_status(response.status_code):
                    raise error

            if attempt >= self._retry.max_attempts:
                logger.error(
                    "Max attempts (%d) exceeded for %s %s", self._retry.max_attempts, method, path
                )
                raise error from cause
            delay = self._retry.delay_for(attempt)
            logger.warning(
                "Retrying %s %s (%d/%d) after %.1fs: %s",
                method,
                path,
                attempt,
                self._retry.max_attempts,
                delay,
                error.message,
            )
            await self._sleep(delay)

    async def _on_error_status(self, status: int, method: str, path: str) -> None:
        if status == 401:
            logger.warning("Unauthorized on %s %s, clearing auth token", method, path)
            if self._token_store is not None:
                await self._token_store.clear_token()
        elif status == 404:
            logger.warning("Resource not found: %s", path)
        elif status == 409:
            logger.warning("Idempotency conflict on %s %s", method, path)
        elif status in (400, 422):
            logger.warning("Validation error on %s %s", method, path)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
