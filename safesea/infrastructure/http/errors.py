"""
Error taxonomy for backend communication.

Transport-level failures (TransportError, RequestTimeoutError) are retried by
the executor; application-level rejections (HttpError, AuthRequiredError) are
not.
"""

from __future__ import annotations


class SafeSeaError(RuntimeError):
    """Base class for errors raised by the SafeSea client layer."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


class TransportError(SafeSeaError):
    """Connection-level failure: DNS, refused connection, reset, etc."""


class RequestTimeoutError(TransportError):
    """The request deadline expired before a response arrived."""

    def __init__(
        self,
        message: str = "Request timeout",
        timeout: float | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message, original)
        self.timeout = timeout


class HttpError(SafeSeaError):
    """Non-success HTTP response other than a handled 401."""

    def __init__(self, status: int, message: str, body: object = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.body = body

    def __repr__(self) -> str:
        return f"HttpError(status={self.status!r}, message={self.message!r})"


class AuthRequiredError(SafeSeaError):
    """401 on a request that carried a token. The token has been removed."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AllEndpointsUnreachableError(SafeSeaError):
    """No candidate base URL answered its health probe."""

    def __init__(self, last_error: Exception | None = None) -> None:
        detail = str(last_error) if last_error is not None else "no candidates probed"
        super().__init__(f"All API endpoints unreachable. Last error: {detail}", last_error)
        self.last_error = last_error


class ResponseShapeError(SafeSeaError):
    """A response body did not match the expected envelope."""
