"""Load and validate environment variables. Uses python-dotenv.

This module is intentionally thin and side-effect free except for loading `.env`.
Callers should use the accessor functions below (or `ClientSettings.from_env`)
rather than reading `os.environ` directly, to keep environment handling consistent.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_API_URL = "http://192.168.43.143:3000"
DEFAULT_REQUEST_TIMEOUT = 20.0
DEFAULT_LOGIN_TIMEOUT = 30.0
DEFAULT_HEALTH_TIMEOUT = 15.0
DEFAULT_DIAGNOSTICS_TIMEOUT = 3.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0


def _project_root() -> Path:
    """Resolve project root (the directory holding `safesea/`)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Uses override=True to ensure .env values take precedence over existing env vars.
    """
    env_path = _project_root() / ".env"
    load_dotenv(env_path, override=True)


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Get optional env var as int; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_optional_float(key: str, default: float) -> float:
    """Get optional env var as float; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_optional_bool(key: str, default: bool) -> bool:
    """Get optional env var as bool (1/true/yes/on); return default if missing."""
    raw = get_optional(key, "").lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# --- Public config accessors ---

def api_urls() -> tuple[str, ...]:
    """
    Optional: ordered candidate backend base URLs, comma-separated.
    Trailing slashes are stripped; duplicates keep their first position.
    """
    raw = get_optional("SAFESEA_API_URLS", DEFAULT_API_URL)
    urls: list[str] = []
    for part in raw.split(","):
        url = part.strip().rstrip("/")
        if url and url not in urls:
            urls.append(url)
    return tuple(urls) or (DEFAULT_API_URL,)


def request_timeout() -> float:
    """Optional: default per-request deadline in seconds. Default 20."""
    return get_optional_float("SAFESEA_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)


def login_timeout() -> float:
    """Optional: deadline for POST /login in seconds. Default 30."""
    return get_optional_float("SAFESEA_LOGIN_TIMEOUT", DEFAULT_LOGIN_TIMEOUT)


def health_timeout() -> float:
    """Optional: deadline for a single /health probe. Default 15."""
    return get_optional_float("SAFESEA_HEALTH_TIMEOUT", DEFAULT_HEALTH_TIMEOUT)


def diagnostics_timeout() -> float:
    """Optional: deadline for each probe of the connection diagnostics. Default 3."""
    return get_optional_float("SAFESEA_DIAGNOSTICS_TIMEOUT", DEFAULT_DIAGNOSTICS_TIMEOUT)


def max_attempts() -> int:
    """Optional: attempts per authenticated request and per startup health check. Default 3."""
    return max(1, get_optional_int("SAFESEA_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))


def backoff_seconds() -> float:
    """Optional: linear backoff step in seconds; attempt n waits n times this. Default 1."""
    return max(0.0, get_optional_float("SAFESEA_BACKOFF_SECONDS", DEFAULT_BACKOFF_SECONDS))


def allow_anonymous_401() -> bool:
    """
    Optional: treat a 401 on a request sent without a token as a success.
    Default true (backends that do not enforce auth on every route yet).
    """
    return get_optional_bool("SAFESEA_ALLOW_ANONYMOUS_401", True)


def storage_dir() -> Path:
    """Optional: directory for persisted token, user profile and API URL."""
    val = get_optional("SAFESEA_STORAGE_DIR", "")
    return Path(val) if val else _project_root() / "data" / "storage"


def log_level() -> str:
    """Optional: log level name. Default INFO."""
    return get_optional("SAFESEA_LOG_LEVEL", "INFO").upper()


def log_file() -> Path | None:
    """Optional: file that receives a copy of the log. Default none (stderr only)."""
    val = get_optional("SAFESEA_LOG_FILE", "")
    return Path(val) if val else None


@dataclass(frozen=True)
class ClientSettings:
    """Explicit configuration injected into the session layer components."""

    api_urls: tuple[str, ...] = (DEFAULT_API_URL,)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    login_timeout: float = DEFAULT_LOGIN_TIMEOUT
    health_timeout: float = DEFAULT_HEALTH_TIMEOUT
    diagnostics_timeout: float = DEFAULT_DIAGNOSTICS_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    allow_anonymous_401: bool = True
    storage_dir: Path | None = None

    @classmethod
    def from_env(cls) -> "ClientSettings":
        return cls(
            api_urls=api_urls(),
            request_timeout=request_timeout(),
            login_timeout=login_timeout(),
            health_timeout=health_timeout(),
            diagnostics_timeout=diagnostics_timeout(),
            max_attempts=max_attempts(),
            backoff_seconds=backoff_seconds(),
            allow_anonymous_401=allow_anonymous_401(),
            storage_dir=storage_dir(),
        )
