"""
Metrics Gate - Gather Services
Fetch raw metric values for a pipeline source.

Every gather service exposes its callable gather operations through
`methods()`; the orchestrator resolves a gather method by name from that
table once, at construction.
"""

import asyncio
import threading
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, RetryError

from pipeline.results import PipelineResult, NO_DATA, DATA_UNAVAILABLE
from utils.config import HTTP_TIMEOUT_SECONDS, MAX_RETRY_ATTEMPTS, RETRY_BACKOFF_MULTIPLIER
from utils.logger import logger

GatherResult = PipelineResult[List[Any]]
GatherMethod = Callable[[str], Awaitable[GatherResult]]

DEFAULT_GATHER_METHOD = "fetch_metrics"


class GatherService:
    """Base class for metric sources."""

    async def fetch_metrics(self, source: str) -> GatherResult:
        raise NotImplementedError

    async def custom_gather(self, source: str) -> GatherResult:
        """Alternate gather entry point; same data as fetch_metrics by default."""
        return await self.fetch_metrics(source)

    def methods(self) -> Dict[str, GatherMethod]:
        """Gather operations callable by name."""
        return {
            "fetch_metrics": self.fetch_metrics,
            "custom_gather": self.custom_gather,
        }


def _as_result(values: Iterable[Any]) -> GatherResult:
    items = list(values)
    if not items:
        return PipelineResult.failure(NO_DATA)
    return PipelineResult.success(items)


class InMemoryGatherService(GatherService):
    """
    Endpoint map for local runs and tests.

    Unknown sources are DataUnavailable; registered empty sources are NoData.
    """

    DEFAULT_ENDPOINTS = {
        "https://api.example.com/data": [44.5, 45.0, 45.5],
        "https://api.example.com/empty": [],
    }

    def __init__(self, endpoints: Optional[Dict[str, Iterable[Any]]] = None):
        source = self.DEFAULT_ENDPOINTS if endpoints is None else endpoints
        self._endpoints: Dict[str, List[Any]] = {uri: list(values) for uri, values in source.items()}
        self._lock = threading.Lock()

    def register_endpoint(self, uri: str, values: Iterable[Any]) -> None:
        with self._lock:
            self._endpoints[uri] = list(values)

    def remove_endpoint(self, uri: str) -> None:
        with self._lock:
            self._endpoints.pop(uri, None)

    async def fetch_metrics(self, source: str) -> GatherResult:
        with self._lock:
            values = self._endpoints.get(source)
        if values is None:
            return PipelineResult.failure(DATA_UNAVAILABLE)
        return _as_result(values)


class HttpGatherService(GatherService):
    """
    Fetches a JSON array of numbers over HTTP with automatic retry logic.

    Blocking requests calls run in a worker thread so the event loop stays
    free. Transport and HTTP errors map to DataUnavailable.
    """

    def __init__(self, timeout: int = HTTP_TIMEOUT_SECONDS):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'MetricsGate/1.0',
            'Accept': 'application/json'
        })

    async def fetch_metrics(self, source: str) -> GatherResult:
        try:
            payload = await asyncio.to_thread(self._get_json, source)
        except (requests.RequestException, RetryError, ValueError) as e:
            logger.warning("Metric source unavailable", extra={
                "source": source,
                "error_type": type(e).__name__,
                "error_message": str(e)
            })
            return PipelineResult.failure(DATA_UNAVAILABLE)

        if not isinstance(payload, list):
            logger.warning("Metric source returned a non-list payload", extra={"source": source})
            return PipelineResult.failure(DATA_UNAVAILABLE)

        return _as_result(payload)

    @retry(
        stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF_MULTIPLIER, min=4, max=60),
        retry=retry_if_exception_type((requests.Timeout, requests.ConnectionError))
    )
    def _get_json(self, source: str) -> Any:
        logger.debug(f"Fetching metrics from {source}")
        response = self.session.get(source, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def close(self):
        """Close the HTTP session."""
        self.session.close()
