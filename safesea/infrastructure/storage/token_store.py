"""
Persisted single-slot storage for the bearer token.
"""

from __future__ import annotations

from safesea.infrastructure.storage.key_value_store import KeyValueStore, StorageError
from safesea.utils.logger import get_logger

logger = get_logger()

TOKEN_KEY = "authToken"


class TokenStore:
    """
    Read-through access to the stored token.

    Storage failures are logged and read as "no token"; they never reach the
    request path.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self) -> str | None:
        try:
            token = self._store.get(TOKEN_KEY)
        except StorageError as e:
            logger.error("Error getting token: %s", e)
            return None
        if not isinstance(token, str) or not token:
            return None
        return token

    def set(self, token: str) -> None:
        try:
            self._store.set(TOKEN_KEY, token)
            logger.info("Token saved")
        except StorageError as e:
            logger.error("Error saving token: %s", e)

    def remove(self) -> None:
        try:
            self._store.remove(TOKEN_KEY)
            logger.info("Token removed")
        except StorageError as e:
            logger.error("Error removing token: %s", e)
