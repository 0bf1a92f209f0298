"""
Single-request execution with a deadline, plus the authenticated retry loop.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import requests
from urllib3.exceptions import ReadTimeoutError

from safesea.infrastructure.http.errors import (
    AuthRequiredError,
    HttpError,
    RequestTimeoutError,
    TransportError,
)
from safesea.infrastructure.http.retry_policy import RetryPolicy
from safesea.infrastructure.storage.token_store import TokenStore
from safesea.utils.config import DEFAULT_REQUEST_TIMEOUT
from safesea.utils.logger import get_logger

logger = get_logger()

CHUNK_SIZE = 1024
JSON_HEADERS = {"Content-Type": "application/json"}


def is_success(response: requests.Response) -> bool:
    return 200 <= int(response.status_code) < 300


def decode_body(response: requests.Response) -> Any:
    """JSON body when parseable, else the raw text; None for an empty body."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def error_message(response: requests.Response, body: Any = None) -> str:
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    reason = getattr(response, "reason", "") or ""
    if reason:
        return f"HTTP {response.status_code}: {reason}"
    return f"HTTP error! status: {response.status_code}"


class RequestExecutor:
    """
    Issues HTTP requests for the session layer.

    Stateless apart from the attempt counter local to one call. The token is
    re-read from the TokenStore on every attempt, so a removal performed by a
    concurrent call is observed by the next attempt.
    """

    def __init__(
        self,
        token_store: TokenStore,
        session: requests.Session | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        default_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        allow_anonymous_401: bool = True,
    ) -> None:
        self._tokens = token_store
        self._session = session or requests.Session()
        self._policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock
        self.default_timeout = default_timeout
        self.allow_anonymous_401 = allow_anonymous_401

    def execute_with_timeout(
        self,
        url: str,
        method: str = "GET",
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        """
        Issue one request and return the raw response, whatever its status.

        The deadline covers the whole exchange: the body is streamed and the
        elapsed time is checked after every chunk, so a server that trickles
        its body cannot hold the call past the deadline.

        Raises:
            RequestTimeoutError: The deadline expired first.
            TransportError: Any other connection-level failure.
        """
        deadline = self.default_timeout if timeout is None else timeout
        merged = {**JSON_HEADERS, **(headers or {})}
        started = self._clock()
        try:
            response = self._session.request(
                method,
                url,
                json=json,
                headers=merged,
                timeout=deadline,
                stream=True,
            )
            self._check_deadline(response, started, deadline, method, url)
            chunks = []
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                chunks.append(chunk)
                self._check_deadline(response, started, deadline, method, url)
        except requests.Timeout as e:
            raise RequestTimeoutError(
                f"Request timeout after {deadline:g}s: {method} {url}", deadline, e
            ) from e
        except requests.ConnectionError as e:
            # body reads that time out surface as ConnectionError(ReadTimeoutError)
            if e.args and isinstance(e.args[0], ReadTimeoutError):
                raise RequestTimeoutError(
                    f"Request timeout after {deadline:g}s: {method} {url}", deadline, e
                ) from e
            raise TransportError(f"{type(e).__name__}: {e}", e) from e
        except requests.RequestException as e:
            raise TransportError(f"{type(e).__name__}: {e}", e) from e

        response._content = b"".join(chunks)
        response._content_consumed = True
        return response

    def _check_deadline(
        self,
        response: requests.Response,
        started: float,
        deadline: float,
        method: str,
        url: str,
    ) -> None:
        if self._clock() - started <= deadline:
            return
        response.close()
        raise RequestTimeoutError(
            f"Request timeout after {deadline:g}s: {method} {url}", deadline
        )

    def authenticated_request(
        self,
        url: str,
        method: str = "GET",
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Issue a request with the stored bearer token under the retry policy.

        Returns the decoded body of a successful response.

        Raises:
            AuthRequiredError: 401 on a request that carried a token (the token
                is removed first).
            HttpError: Any other non-success status. Not retried.
            TransportError: Transport failure on the final attempt.
        """
        attempt = 0
        while True:
            attempt += 1
            token = self._tokens.get()
            req_headers = dict(JSON_HEADERS)
            if token:
                req_headers["Authorization"] = f"Bearer {token}"
            req_headers.update(headers or {})

            logger.info("Making %s request to: %s", method, url)
            logger.debug("Using token: %s", "present" if token else "none")
            try:
                response = self.execute_with_timeout(
                    url, method, json=json, headers=req_headers, timeout=timeout
                )
            except TransportError as e:
                logger.warning("Attempt %d/%d failed: %s", attempt, self._policy.max_attempts, e)
                if not self._policy.should_retry(attempt):
                    raise
                delay = self._policy.delay(attempt)
                logger.info("Retrying %s %s in %.1fs", method, url, delay)
                self._sleep(delay)
                continue

            body = decode_body(response)
            if is_success(response):
                return body

            status = int(response.status_code)
            if status == 401 and token:
                logger.warning("Authentication failed, removing token")
                self._tokens.remove()
                raise AuthRequiredError()
            if status == 401 and self.allow_anonymous_401:
                logger.warning(
                    "401 from %s without a token; passing the response through as a result", url
                )
                return body
            raise HttpError(status, error_message(response, body), body)
