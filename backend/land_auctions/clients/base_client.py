"""Base async HTTP client with bearer auth, per-call timeouts and retry."""

import asyncio
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()


def is_transient_error(exc: BaseException) -> bool:
    """Timeouts, connection failures, 429 and 5xx are worth another attempt."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


class BaseAPIClient:
    """
    Async HTTP client base using httpx.AsyncClient.
    Features: configurable auth headers, per-request timeout, bounded retry
    with exponential backoff on transient errors, optional rate limiting.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        rate_limit_delay: float = 0.0,
        max_attempts: int = 3,
        backoff_min: float = 2.0,
        backoff_max: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self._headers = headers or {}
        self._timeout = timeout
        self._rate_limit_delay = rate_limit_delay
        self._max_attempts = max(1, max_attempts)
        self._backoff_min = backoff_min
        self._backoff_max = backoff_max
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Make an HTTP request, retrying transient failures."""
        client = await self._get_client()
        request_timeout = timeout if timeout is not None else self._timeout

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(
                multiplier=self._backoff_min, min=self._backoff_min, max=self._backoff_max
            ),
            retry=retry_if_exception(is_transient_error),
            reraise=True,
        ):
            with attempt:
                logger.debug(
                    "API request",
                    method=method,
                    path=path,
                    attempt=attempt.retry_state.attempt_number,
                )
                response = await client.request(
                    method, path, params=params, json=json, timeout=request_timeout
                )
                logger.debug(
                    "API response",
                    method=method,
                    path=path,
                    status=response.status_code,
                )
                response.raise_for_status()

        if self._rate_limit_delay > 0:
            await asyncio.sleep(self._rate_limit_delay)

        return response

    async def get(
        self, path: str, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> Any:
        response = await self._request("GET", path, params=params, timeout=timeout)
        return response.json()

    async def post(
        self, path: str, json: dict[str, Any] | None = None, timeout: float | None = None
    ) -> Any:
        response = await self._request("POST", path, json=json, timeout=timeout)
        return response.json()

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
