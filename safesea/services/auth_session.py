"""
Login/logout state machine and persisted user session.
"""

from __future__ import annotations

from typing import Any

from safesea.domains.models import Session, SessionState, UserProfile, build_user_profile
from safesea.infrastructure.http.errors import AuthRequiredError, SafeSeaError, TransportError
from safesea.infrastructure.storage.key_value_store import KeyValueStore, StorageError
from safesea.infrastructure.storage.token_store import TokenStore
from safesea.services.api_client import AuthenticatedClient
from safesea.utils.logger import get_logger

logger = get_logger()

USER_KEY = "user"

NETWORK_ERROR_MESSAGE = "Network error. Please try again later."
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."
MISSING_CREDENTIALS_MESSAGE = "Please enter both username and password."


class LoginError(RuntimeError):
    """Classified login failure with a message fit for display."""

    NETWORK = "network"
    INVALID_CREDENTIALS = "invalid_credentials"
    MISSING_CREDENTIALS = "missing_credentials"

    def __init__(self, kind: str, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.original = original

    @classmethod
    def from_exception(cls, error: Exception) -> "LoginError":
        if isinstance(error, TransportError):
            return cls(cls.NETWORK, NETWORK_ERROR_MESSAGE, error)
        return cls(cls.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE, error)


class AuthSession:
    """
    Tracks whether the user is signed in and persists the profile.

    States: UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED, and back to
    UNAUTHENTICATED on logout or when the backend rejects the stored token.
    """

    def __init__(
        self,
        client: AuthenticatedClient,
        token_store: TokenStore,
        store: KeyValueStore,
    ) -> None:
        self._client = client
        self._tokens = token_store
        self._store = store
        self._state = SessionState.UNAUTHENTICATED
        self._session = Session.empty()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    @property
    def user(self) -> UserProfile | None:
        return self._session.user

    def _reset(self) -> None:
        self._session = Session.empty()
        self._state = SessionState.UNAUTHENTICATED

    def _load_user(self) -> UserProfile | None:
        try:
            user = self._store.get(USER_KEY)
        except StorageError as e:
            logger.error("Failed to load user profile from storage: %s", e)
            return None
        return user if isinstance(user, dict) else None

    def restore(self) -> Session:
        """Resume a persisted session without contacting the backend."""
        token = self._tokens.get()
        user = self._load_user()
        if token and user:
            self._session = Session(authenticated=True, token=token, user=user)
            self._state = SessionState.AUTHENTICATED
            logger.info("Restored session for %s", user.get("username"))
        else:
            self._reset()
        return self._session

    def login(self, username: str, password: str) -> Session:
        """
        Authenticate against POST /login and persist the result.

        Raises:
            LoginError: Missing input, rejected credentials or network failure.
                The session is UNAUTHENTICATED afterwards.
        """
        username = (username or "").strip()
        if not username or not password:
            raise LoginError(LoginError.MISSING_CREDENTIALS, MISSING_CREDENTIALS_MESSAGE)

        self._state = SessionState.AUTHENTICATING
        try:
            data = self._client.login_request(username, password)
        except SafeSeaError as e:
            logger.error("Login error: %s", e)
            self._reset()
            raise LoginError.from_exception(e) from e
        except Exception:
            self._reset()
            raise

        if not isinstance(data, dict) or not data.get("success"):
            logger.error("Login failed: backend returned success: false")
            self._reset()
            raise LoginError(LoginError.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        try:
            return self._complete_login(username, data)
        except StorageError as e:
            logger.error("Failed to save authentication data to storage: %s", e)
            self._reset()
            raise LoginError(LoginError.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE, e) from e

    def _complete_login(self, username: str, data: dict[str, Any]) -> Session:
        token = data.get("token")
        if token:
            self._tokens.set(token)
        else:
            logger.info("No token in login response; backend using session-based authentication")
        profile = build_user_profile(username, data)
        self._store.set(USER_KEY, profile)
        self._session = Session(authenticated=True, token=self._tokens.get(), user=profile)
        self._state = SessionState.AUTHENTICATED
        logger.info("User %s authenticated", profile.get("username"))
        return self._session

    def logout(self) -> None:
        """Forget the token and profile. Always ends UNAUTHENTICATED."""
        self._tokens.remove()
        try:
            self._store.remove(USER_KEY)
        except StorageError as e:
            logger.error("Failed to remove authentication data from storage: %s", e)
        self._reset()
        logger.info("Logged out")

    def invalidate(self, error: AuthRequiredError | None = None) -> None:
        """Drop the session after the backend rejected the stored token."""
        if self._state is SessionState.UNAUTHENTICATED:
            return
        logger.warning("Session invalidated: %s", error or "token rejected")
        try:
            self._store.remove(USER_KEY)
        except StorageError as e:
            logger.error("Failed to remove user profile from storage: %s", e)
        self._reset()
