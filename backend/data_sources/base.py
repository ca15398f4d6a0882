"""
Provider Client Base
Shared HTTP plumbing for every data source: one short-lived httpx client per
request, a process-wide outbound concurrency limiter, metrics recording and
translation of transport failures into the provider error taxonomy.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from data_sources.errors import (
    MalformedPayload,
    ProviderRateLimited,
    ProviderTimeout,
    ProviderUnavailable,
)
from infrastructure.api_metrics import APICallTimer, APIMetricsTracker, api_metrics

logger = logging.getLogger("Providers")


class OutboundLimiter:
    """Upper bound on simultaneous outbound requests, shared by all providers"""

    def __init__(self, max_concurrent: int):
        self.max_concurrent = max(1, int(max_concurrent))
        self._semaphore = asyncio.Semaphore(self.max_concurrent)

    async def __aenter__(self):
        await self._semaphore.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self._semaphore.release()
        return False


class ProviderClient:
    """Base class for async provider clients"""

    SERVICE = "provider"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        limiter: Optional[OutboundLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[APIMetricsTracker] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.limiter = limiter or OutboundLimiter(8)
        self.transport = transport
        self.metrics = metrics or api_metrics

    def _headers(self) -> Dict[str, str]:
        return {"accept": "application/json"}

    async def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> Any:
        """
        GET base_url + path and return the decoded JSON body.

        Raises ProviderTimeout, ProviderRateLimited, ProviderUnavailable or
        MalformedPayload. Returns None for a 404 when allow_not_found is set.
        """
        url = f"{self.base_url}{path}"

        async with self.limiter:
            with APICallTimer(self.SERVICE, path, tracker=self.metrics) as timer:
                try:
                    async with httpx.AsyncClient(
                        timeout=self.timeout,
                        transport=self.transport,
                        headers=self._headers(),
                    ) as client:
                        response = await client.get(url, params=params)
                except httpx.TimeoutException as e:
                    timer.status = "timeout"
                    raise ProviderTimeout(self.SERVICE) from e
                except httpx.HTTPError as e:
                    raise ProviderUnavailable(self.SERVICE, str(e) or type(e).__name__) from e

                timer.status_code = response.status_code

                if response.status_code == 404 and allow_not_found:
                    return None

                if response.status_code == 429:
                    timer.status = "rate_limited"
                    raise ProviderRateLimited(self.SERVICE, response.headers.get("retry-after"))

                if response.status_code < 200 or response.status_code >= 300:
                    raise ProviderUnavailable(
                        self.SERVICE,
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                    )

                try:
                    return response.json()
                except ValueError as e:
                    raise MalformedPayload(self.SERVICE, f"invalid JSON from {path}") from e


def expect_dict(service: str, data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedPayload(service, f"expected object for {what}, got {type(data).__name__}")
    return data


def expect_list(service: str, data: Any, what: str) -> list:
    if not isinstance(data, list):
        raise MalformedPayload(service, f"expected list for {what}, got {type(data).__name__}")
    return data


def to_float(value: Any, default: float = 0.0) -> float:
    """Lenient numeric parse; None, blanks and garbage become the default"""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
