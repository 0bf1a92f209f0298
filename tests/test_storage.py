"""
Tests for KeyValueStore and TokenStore persistence.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from safesea.infrastructure.storage.key_value_store import KeyValueStore, StorageError
from safesea.infrastructure.storage.token_store import TOKEN_KEY, TokenStore


def test_values_survive_a_new_store_instance(tmp_path: Path) -> None:
    KeyValueStore(tmp_path).set("user", {"username": "alice", "role": "captain"})
    assert KeyValueStore(tmp_path).get("user") == {"username": "alice", "role": "captain"}


def test_get_missing_key_returns_none(store: KeyValueStore) -> None:
    assert store.get("nothing") is None


def test_remove_missing_key_is_ignored(store: KeyValueStore) -> None:
    store.remove("nothing")
    store.set("x", 1)
    store.remove("x")
    assert store.get("x") is None


def test_corrupt_file_raises_storage_error(store: KeyValueStore) -> None:
    store.base_dir.mkdir(parents=True, exist_ok=True)
    (store.base_dir / "user.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        store.get("user")


def test_invalid_key_rejected(store: KeyValueStore) -> None:
    with pytest.raises(ValueError):
        store.get("../escape")


def test_token_round_trip_across_restart(store: KeyValueStore) -> None:
    TokenStore(store).set("T1")
    assert TokenStore(KeyValueStore(store.base_dir)).get() == "T1"


def test_token_reads_are_not_cached(store: KeyValueStore) -> None:
    first = TokenStore(store)
    second = TokenStore(store)
    first.set("T1")
    assert second.get() == "T1"
    second.remove()
    assert first.get() is None


def test_unreadable_token_is_treated_as_absent(store: KeyValueStore) -> None:
    store.base_dir.mkdir(parents=True, exist_ok=True)
    (store.base_dir / f"{TOKEN_KEY}.json").write_text("garbage", encoding="utf-8")
    assert TokenStore(store).get() is None


def test_undecodable_token_file_is_treated_as_absent(store: KeyValueStore) -> None:
    store.base_dir.mkdir(parents=True, exist_ok=True)
    (store.base_dir / f"{TOKEN_KEY}.json").write_bytes(b'"\xff\xfe"')
    with pytest.raises(StorageError):
        store.get(TOKEN_KEY)
    assert TokenStore(store).get() is None


def test_inaccessible_storage_dir_raises_storage_error(store: KeyValueStore, monkeypatch: pytest.MonkeyPatch) -> None:
    def denied(self: Path) -> bool:
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "is_file", denied)
    with pytest.raises(StorageError):
        store.get(TOKEN_KEY)
    assert TokenStore(store).get() is None


def test_persistence_failures_never_propagate() -> None:
    broken = MagicMock(spec=KeyValueStore)
    broken.get.side_effect = StorageError("disk gone")
    broken.set.side_effect = StorageError("disk gone")
    broken.remove.side_effect = StorageError("disk gone")
    tokens = TokenStore(broken)

    tokens.set("T1")
    tokens.remove()
    assert tokens.get() is None


def test_non_string_token_ignored(store: KeyValueStore) -> None:
    store.set(TOKEN_KEY, {"token": "T1"})
    assert TokenStore(store).get() is None
