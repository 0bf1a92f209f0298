"""
File-backed key/value persistence for the session layer.

One JSON document per key under the storage directory. Nothing is cached in
memory: every `get` reads the file again so concurrent writers are observed.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from safesea.utils.config import storage_dir
from safesea.utils.logger import get_logger

logger = get_logger()

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(RuntimeError):
    """Raised when the underlying persistence cannot be read or written."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


class KeyValueStore:
    """Persistent single-value slots addressed by key."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir is not None else storage_dir()

    @property
    def base_dir(self) -> Path:
        return self._base

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key or ""):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._base / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """Return the stored value for key, or None if nothing is stored."""
        path = self._path(key)
        try:
            if not path.is_file():
                return None
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {key!r} from {path}: {e}", e) from e

    def set(self, key: str, value: Any) -> None:
        """Persist value under key, replacing any previous value."""
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self._base.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False)
            tmp.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {key!r} to {path}: {e}", e) from e

    def remove(self, key: str) -> None:
        """Delete key; missing keys are ignored."""
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {key!r} at {path}: {e}", e) from e
