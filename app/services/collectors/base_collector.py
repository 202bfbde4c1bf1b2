"""
VLRBUDDY - Base Collector Framework

Base class for upstream HTTP collectors with retry logic.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.core.exceptions import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class RetryStrategy:
    """Linear backoff retry strategy."""

    max_attempts: int = 3
    base_delay: float = 1.0

    def get_delay(self, retry: int) -> float:
        """Delay before retry number ``retry`` (1-indexed)."""
        return self.base_delay * retry


class BaseCollector:
    """
    Base class for upstream collectors.

    Provides:
    - HTTP client with connection pooling
    - Retry logic with linear backoff on non-2xx and transport errors
    - Normalized failures as UpstreamError
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 30.0,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.retry_strategy = RetryStrategy(max_attempts=max_attempts, base_delay=retry_delay)
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers. Override in subclasses for auth."""
        return {"Accept": "application/json"}

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint, relative to base_url
            params: Query parameters
            json_data: JSON body data
            timeout: Per-request timeout override

        Returns:
            Parsed JSON response

        Raises:
            NotFoundError: on 404, without retrying
            UpstreamError: malformed JSON, or every attempt failed
        """
        client = await self.get_client()
        max_attempts = self.retry_strategy.max_attempts
        last_error: Optional[UpstreamError] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self.retry_strategy.get_delay(attempt - 1)
                logger.info(f"[{self.name}] Retry {attempt - 1}/{max_attempts - 1} for {endpoint} in {delay:.1f}s")
                await asyncio.sleep(delay)

            try:
                logger.debug(f"[{self.name}] {method} {endpoint} (attempt {attempt}/{max_attempts})")
                request_kwargs: Dict[str, Any] = {
                    "method": method,
                    "url": endpoint,
                    "params": params,
                    "json": json_data,
                    "headers": self._get_headers(),
                }
                if timeout is not None:
                    request_kwargs["timeout"] = timeout
                response = await client.request(**request_kwargs)
            except httpx.HTTPError as e:
                last_error = UpstreamError(f"[{self.name}] {method} {endpoint} failed: {e}")
                logger.warning(f"[{self.name}] Connection error on {endpoint}: {e}")
                continue

            if response.status_code == 404:
                raise NotFoundError(self.name, endpoint)

            if not response.is_success:
                last_error = UpstreamError(
                    f"[{self.name}] {method} {endpoint} returned HTTP {response.status_code}",
                    status=response.status_code,
                    body=response.text,
                )
                logger.warning(f"[{self.name}] HTTP {response.status_code} on {endpoint} (attempt {attempt}/{max_attempts})")
                continue

            try:
                return response.json()
            except ValueError as e:
                raise UpstreamError(
                    f"[{self.name}] Malformed JSON from {endpoint}: {e}",
                    status=response.status_code,
                    body=response.text,
                ) from e

        logger.error(f"[{self.name}] All {max_attempts} attempts failed for {endpoint}")
        raise last_error

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Make GET request."""
        return await self._make_request("GET", endpoint, params=params, timeout=timeout)

    async def post(
        self,
        endpoint: str,
        json_data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Make POST request."""
        return await self._make_request("POST", endpoint, params=params, json_data=json_data, timeout=timeout)

    async def delete(self, endpoint: str, timeout: Optional[float] = None) -> Any:
        """Make DELETE request."""
        return await self._make_request("DELETE", endpoint, timeout=timeout)
