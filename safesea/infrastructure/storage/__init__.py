"""Persistence: file-backed key/value slots and the bearer token store."""

from safesea.infrastructure.storage.key_value_store import KeyValueStore, StorageError
from safesea.infrastructure.storage.token_store import TokenStore

__all__ = ["KeyValueStore", "StorageError", "TokenStore"]
