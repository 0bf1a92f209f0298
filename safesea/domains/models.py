"""
Domain models for the session layer: session state, user profile, connection
reports, the list-response envelope and the tri-state fetch result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from safesea.infrastructure.http.errors import ResponseShapeError

T = TypeVar("T")

UserProfile = dict[str, Any]


def build_user_profile(username: str, response: dict[str, Any] | None) -> UserProfile:
    """
    Merge the login response into a profile.

    `username` from the response wins over the submitted one; any fields of a
    nested `user` object are layered on top.
    """
    response = response or {}
    profile: UserProfile = {"username": response.get("username") or username}
    user = response.get("user")
    if isinstance(user, dict):
        profile.update(user)
    if not profile.get("username"):
        profile["username"] = username
    return profile


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Session:
    """Snapshot of the authentication state. `authenticated` implies `user`."""

    authenticated: bool = False
    token: str | None = None
    user: UserProfile | None = None

    def __post_init__(self) -> None:
        if self.authenticated and self.user is None:
            raise ValueError("An authenticated session requires a user profile")

    @classmethod
    def empty(cls) -> "Session":
        return cls()

    @property
    def username(self) -> str | None:
        return (self.user or {}).get("username")

    def __repr__(self) -> str:
        token = "present" if self.token else "none"
        return f"Session(authenticated={self.authenticated}, user={self.username!r}, token={token})"


@dataclass(frozen=True)
class ConnectionReport:
    """Outcome of probing one candidate URL during diagnostics."""

    url: str
    outcome: str
    latency_ms: float | None = None
    detail: Any = None

    @property
    def ok(self) -> bool:
        return self.outcome == "success"


@dataclass(frozen=True)
class ResponseEnvelope:
    """
    List responses arrive either wrapped as `{"data": [...]}` or as a bare
    JSON array. Anything else is rejected at the boundary.
    """

    items: list[Any]
    wrapped: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, body: Any) -> "ResponseEnvelope":
        if isinstance(body, list):
            return cls(items=body)
        if isinstance(body, dict) and "data" in body:
            data = body["data"]
            if not isinstance(data, list):
                raise ResponseShapeError(
                    f"Expected 'data' to be a list, got {type(data).__name__}"
                )
            extra = {k: v for k, v in body.items() if k != "data"}
            return cls(items=data, wrapped=True, extra=extra)
        raise ResponseShapeError(
            f"Expected a JSON array or an object with a 'data' list, got {type(body).__name__}"
        )


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Genuine backend data."""

    data: T

    degraded = False


@dataclass(frozen=True)
class Degraded(Generic[T]):
    """Placeholder data substituted because the backend call failed."""

    reason: str
    fallback: T
    error: Exception | None = None

    degraded = True

    @property
    def data(self) -> T:
        return self.fallback


@dataclass(frozen=True)
class Err:
    """A failure the caller must act on; no placeholder is offered."""

    error: Exception

    degraded = False

    @property
    def data(self) -> None:
        return None


FetchResult = Union[Ok[T], Degraded[T], Err]
