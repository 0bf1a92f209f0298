"""
Authenticated domain calls against the SafeSea backend.

Composes RequestExecutor, EndpointSelector and TokenStore. The active URL and
the token are read on every call; nothing is cached here.
"""

from __future__ import annotations

from typing import Any, Callable

from safesea.domains import fallbacks
from safesea.domains.models import Degraded, Err, FetchResult, Ok, ResponseEnvelope
from safesea.infrastructure.http.endpoint_selector import EndpointSelector
from safesea.infrastructure.http.errors import AuthRequiredError, HttpError, SafeSeaError
from safesea.infrastructure.http.request_executor import (
    RequestExecutor,
    decode_body,
    is_success,
)
from safesea.utils.config import DEFAULT_LOGIN_TIMEOUT
from safesea.utils.logger import get_logger

logger = get_logger()


class AuthenticatedClient:
    def __init__(
        self,
        executor: RequestExecutor,
        endpoints: EndpointSelector,
        login_timeout: float = DEFAULT_LOGIN_TIMEOUT,
    ) -> None:
        self._executor = executor
        self._endpoints = endpoints
        self.login_timeout = login_timeout
        self._auth_listeners: list[Callable[[AuthRequiredError], None]] = []

    @property
    def base_url(self) -> str:
        return self._endpoints.active_url

    def add_auth_listener(self, listener: Callable[[AuthRequiredError], None]) -> None:
        """Register a callback fired whenever a stored token is rejected with 401."""
        self._auth_listeners.append(listener)

    def _notify_auth_required(self, error: AuthRequiredError) -> None:
        for listener in list(self._auth_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Auth listener %r failed", listener)

    def _request(self, path: str, method: str = "GET", json: Any = None) -> Any:
        url = self._endpoints.url_for(path)
        try:
            return self._executor.authenticated_request(url, method, json=json)
        except AuthRequiredError as e:
            self._notify_auth_required(e)
            raise

    def _fetch_list(
        self,
        path: str,
        label: str,
        fallback: Callable[[], list[dict[str, Any]]],
    ) -> FetchResult[list[dict[str, Any]]]:
        logger.info("Fetching %s data...", label)
        try:
            body = self._request(path)
            envelope = ResponseEnvelope.parse(body)
        except AuthRequiredError as e:
            logger.error("%s request rejected: %s", label.capitalize(), e)
            return Err(e)
        except SafeSeaError as e:
            logger.error("%s data error: %s", label.capitalize(), e)
            logger.warning("Returning placeholder %s data", label)
            return Degraded(reason=str(e), fallback=fallback(), error=e)
        logger.info("Loaded %d %s records", len(envelope.items), label)
        return Ok(envelope.items)

    # --- Session ---

    def login_request(self, username: str, password: str) -> Any:
        """
        POST /login with the extended deadline. Single attempt, no bearer.

        Raises:
            HttpError: Non-success status; message from the body or "Login failed".
            TransportError: Connection failure or timeout.
        """
        url = self._endpoints.url_for("/login")
        logger.info("Attempting login to: %s", url)
        response = self._executor.execute_with_timeout(
            url,
            "POST",
            json={"username": username, "password": password},
            headers={"Accept": "application/json"},
            timeout=self.login_timeout,
        )
        body = decode_body(response)
        logger.debug(
            "Login response has token: %s",
            bool(isinstance(body, dict) and body.get("token")),
        )
        if not is_success(response):
            message = body.get("message") if isinstance(body, dict) else None
            raise HttpError(int(response.status_code), message or "Login failed", body)
        return body

    def create_user(self) -> Any:
        try:
            return self._request("/create-user", "POST")
        except SafeSeaError as e:
            logger.error("Create user error: %s", e)
            raise

    # --- Read models with placeholder fallback ---

    def get_weather(self) -> FetchResult[list[dict[str, Any]]]:
        return self._fetch_list("/weather", "weather", fallbacks.fallback_weather)

    def get_locations(self) -> FetchResult[list[dict[str, Any]]]:
        return self._fetch_list("/locations", "location", fallbacks.fallback_locations)

    def get_alerts(self) -> FetchResult[list[dict[str, Any]]]:
        return self._fetch_list("/alerts", "alerts", fallbacks.fallback_alerts)

    # --- Alerts ---

    def get_alert(self, alert_id: str | int) -> Any:
        try:
            body = self._request(f"/alerts/{alert_id}")
        except SafeSeaError as e:
            logger.error("Get alert error: %s", e)
            raise
        if isinstance(body, dict) and "alert" in body:
            return body["alert"]
        return body

    def create_alert(self, alert: dict[str, Any]) -> Any:
        try:
            return self._request("/alerts", "POST", json=alert)
        except SafeSeaError as e:
            logger.error("Create alert error: %s", e)
            raise

    def acknowledge_alert(self, alert_id: str | int, response_message: str = "") -> Any:
        try:
            return self._request(
                f"/alerts/{alert_id}/acknowledge",
                "POST",
                json={"responseMessage": response_message},
            )
        except SafeSeaError as e:
            logger.error("Alert acknowledgment error: %s", e)
            raise

    # --- IoT ---

    def submit_iot_data(self, payload: dict[str, Any]) -> Any:
        try:
            return self._request("/iot/data", "POST", json=payload)
        except SafeSeaError as e:
            logger.error("Submit IoT data error: %s", e)
            raise

    def _status(self, path: str, label: str) -> Any:
        try:
            response = self._executor.execute_with_timeout(self._endpoints.url_for(path))
        except SafeSeaError as e:
            logger.error("%s error: %s", label, e)
            raise
        body = decode_body(response)
        if not is_success(response):
            raise HttpError(
                int(response.status_code), f"{label} failed: HTTP {response.status_code}", body
            )
        return body

    def check_iot_health(self) -> Any:
        return self._status("/iot/health", "IoT health")

    def check_api_status(self) -> Any:
        return self._status("/", "API status")
