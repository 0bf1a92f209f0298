"""
Candidate backend URLs, health probing, and the persisted active URL.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable

from safesea.domains.models import ConnectionReport
from safesea.infrastructure.http.errors import (
    AllEndpointsUnreachableError,
    HttpError,
    SafeSeaError,
)
from safesea.infrastructure.http.request_executor import (
    RequestExecutor,
    decode_body,
    error_message,
    is_success,
)
from safesea.infrastructure.http.retry_policy import RetryPolicy
from safesea.infrastructure.storage.key_value_store import KeyValueStore, StorageError
from safesea.utils.config import DEFAULT_DIAGNOSTICS_TIMEOUT, DEFAULT_HEALTH_TIMEOUT
from safesea.utils.logger import get_logger

logger = get_logger()

ACTIVE_URL_KEY = "apiBaseUrl"


class EndpointSelector:
    """
    Owns the ordered candidate base URLs and the single active one.

    The active URL is always a member of the candidates; `set_active` is the
    only mutator and it persists every accepted change.
    """

    def __init__(
        self,
        candidates: Iterable[str],
        executor: RequestExecutor,
        store: KeyValueStore,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        health_timeout: float = DEFAULT_HEALTH_TIMEOUT,
        diagnostics_timeout: float = DEFAULT_DIAGNOSTICS_TIMEOUT,
    ) -> None:
        self._candidates = tuple(candidates)
        if not self._candidates:
            raise ValueError("EndpointSelector needs at least one candidate URL")
        self._executor = executor
        self._store = store
        self._policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock
        self.health_timeout = health_timeout
        self.diagnostics_timeout = diagnostics_timeout
        self._active = self._candidates[0]

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._candidates

    @property
    def active_url(self) -> str:
        return self._active

    def url_for(self, path: str) -> str:
        """Join the active base URL with an endpoint path such as '/alerts'."""
        return f"{self._active}{path if path.startswith('/') else '/' + path}"

    def set_active(self, url: str) -> bool:
        """Make `url` active and persist it. Non-candidates are rejected."""
        if url not in self._candidates:
            logger.error("Invalid API URL: %s", url)
            return False
        if url != self._active:
            logger.info("Changing API base URL to: %s", url)
        self._active = url
        try:
            self._store.set(ACTIVE_URL_KEY, url)
        except StorageError as e:
            logger.error("Error saving API URL: %s", e)
        return True

    def _probe(self, base_url: str, timeout: float) -> Any:
        response = self._executor.execute_with_timeout(
            f"{base_url}/health",
            "GET",
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
        body = decode_body(response)
        if not is_success(response):
            raise HttpError(
                int(response.status_code),
                f"Health check failed: {error_message(response, body)}",
                body,
            )
        return body

    def health_check(self) -> Any:
        """
        Probe candidates in order; the first healthy one becomes active.

        Returns:
            The health endpoint's decoded body.

        Raises:
            AllEndpointsUnreachableError: No candidate answered successfully.
        """
        last_error: Exception | None = None
        for url in self._candidates:
            logger.info("Testing connectivity to: %s/health", url)
            try:
                data = self._probe(url, self.health_timeout)
            except SafeSeaError as e:
                logger.error("Health check failed for %s: %s", url, e)
                last_error = e
                continue
            logger.info("Health check successful for %s", url)
            if url != self._active:
                logger.info("Switching to working API URL: %s", url)
                self.set_active(url)
            return data
        raise AllEndpointsUnreachableError(last_error)

    def _load_persisted(self) -> str | None:
        try:
            stored = self._store.get(ACTIVE_URL_KEY)
        except StorageError as e:
            logger.error("Error reading stored API URL: %s", e)
            return None
        return stored if isinstance(stored, str) else None

    def initialize(self) -> str:
        """
        Restore the persisted URL, then confirm connectivity.

        Never raises on unreachability: after the last failed attempt the
        client keeps whatever URL is active (fail-open).

        Returns:
            The active URL once initialization finishes.
        """
        logger.info("Initializing API endpoints...")
        stored = self._load_persisted()
        if stored and stored in self._candidates:
            self._active = stored
            logger.info("Using stored API URL: %s", stored)
        else:
            self._active = self._candidates[0]
            logger.info("Using default API URL: %s", self._active)

        attempt = 0
        while True:
            attempt += 1
            logger.info("Health check attempt %d/%d...", attempt, self._policy.max_attempts)
            try:
                self.health_check()
                break
            except AllEndpointsUnreachableError as e:
                logger.warning("Health check attempt %d failed: %s", attempt, e)
                if not self._policy.should_retry(attempt):
                    logger.error("All API initialization attempts failed")
                    break
                delay = self._policy.delay(attempt)
                logger.info("Waiting %.1fs before next attempt...", delay)
                self._sleep(delay)

        logger.info("API initialization completed. Using: %s", self._active)
        return self._active

    def test_all_connections(self) -> list[ConnectionReport]:
        """Probe every candidate independently. Does not change the active URL."""
        reports: list[ConnectionReport] = []
        for url in self._candidates:
            started = self._clock()
            try:
                data = self._probe(url, self.diagnostics_timeout)
            except SafeSeaError as e:
                reports.append(ConnectionReport(url=url, outcome="error", detail=str(e)))
                continue
            latency_ms = (self._clock() - started) * 1000.0
            reports.append(
                ConnectionReport(url=url, outcome="success", latency_ms=latency_ms, detail=data)
            )
        return reports
