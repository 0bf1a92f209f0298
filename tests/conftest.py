"""
Shared fixtures: fake HTTP responses, a recording sleep and a temp-dir store.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from safesea.infrastructure.storage.key_value_store import KeyValueStore
from safesea.infrastructure.storage.token_store import TokenStore


def _response(status: int = 200, body: Any = None, text: str | None = None, reason: str = "") -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.reason = reason
    if body is not None:
        raw = json.dumps(body)
        r.content = raw.encode()
        r.text = raw
        r.json.return_value = body
    elif text is not None:
        r.content = text.encode()
        r.text = text
        r.json.side_effect = ValueError("not json")
    else:
        r.content = b""
        r.text = ""
        r.json.side_effect = ValueError("empty body")
    r.iter_content.side_effect = lambda chunk_size=1, decode_unicode=False: iter([r.content] if r.content else [])
    return r


class RecordingSleep:
    """Virtual clock for backoff: records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def make_response():
    return _response


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def store(tmp_path: Path) -> KeyValueStore:
    return KeyValueStore(tmp_path / "storage")


@pytest.fixture
def tokens(store: KeyValueStore) -> TokenStore:
    return TokenStore(store)


@pytest.fixture
def http() -> MagicMock:
    """Stand-in for requests.Session; tests set `request.side_effect`/`return_value`."""
    return MagicMock()
