"""Tests for MemoryTokenStore and FileTokenStore."""

from __future__ import annotations

import json
import os
import stat
import sys

import pytest

from routerkit.auth.token_store import FileTokenStore, MemoryTokenStore
from routerkit.models import Token


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    """Point the tokens directory at a temporary location."""
    path = tmp_path / "tokens"
    monkeypatch.setattr("routerkit.auth.token_store.get_tokens_dir", lambda: path)
    return path


# ---------------------------------------------------------------------------
# Change notification (shared base class)
# ---------------------------------------------------------------------------


class TestSubscribe:
    def test_listener_called_on_write_and_clear(self, token_factory):
        store = MemoryTokenStore()
        seen = []
        store.subscribe(seen.append)

        token = token_factory()
        store.write(token)
        store.clear()

        assert seen == [token, None]

    def test_unsubscribe(self, token_factory):
        store = MemoryTokenStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        store.write(token_factory())
        assert seen == []

    def test_unsubscribe_twice_is_harmless(self):
        store = MemoryTokenStore()
        unsubscribe = store.subscribe(lambda token: None)
        unsubscribe()
        unsubscribe()


class TestMemoryTokenStore:
    def test_empty_by_default(self):
        store = MemoryTokenStore()
        assert store.read() is None
        assert not store.is_logged_in

    def test_initial_token(self, token_factory):
        token = token_factory()
        store = MemoryTokenStore(token)
        assert store.read() == token
        assert store.is_logged_in


# ---------------------------------------------------------------------------
# File persistence
# ---------------------------------------------------------------------------


class TestFileTokenStore:
    def test_path_is_per_profile(self, store_dir):
        assert FileTokenStore("my-api").path == store_dir / "my-api.json"

    def test_round_trip_across_instances(self, store_dir, token_factory):
        token = token_factory()
        FileTokenStore("my-api").write(token)
        loaded = FileTokenStore("my-api").read()
        assert loaded == token

    def test_file_contents(self, store_dir, token_factory):
        store = FileTokenStore("my-api")
        store.write(token_factory(expires_in=None))
        data = json.loads(store.path.read_text())
        assert data == {"access_token": "A1", "refresh_token": "R1", "expires_at": None}

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_private(self, store_dir, token_factory):
        store = FileTokenStore("my-api")
        store.write(token_factory())
        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_clear_removes_file(self, store_dir, token_factory):
        store = FileTokenStore("my-api")
        store.write(token_factory())
        store.clear()
        assert not store.path.exists()
        assert not store.is_logged_in

    def test_clear_when_missing_is_noop(self, store_dir):
        FileTokenStore("never-written").clear()

    def test_corrupted_file_reads_as_logged_out(self, store_dir):
        store = FileTokenStore("my-api")
        store_dir.mkdir(parents=True, exist_ok=True)
        store.path.write_text("{not json")
        assert store.read() is None

    def test_invalid_shape_reads_as_logged_out(self, store_dir):
        store = FileTokenStore("my-api")
        store_dir.mkdir(parents=True, exist_ok=True)
        store.path.write_text(json.dumps({"refresh_token": "R1"}))
        assert store.read() is None

    def test_explicit_directory(self, tmp_path, token_factory):
        store = FileTokenStore("x", directory=tmp_path)
        store.write(token_factory())
        assert (tmp_path / "x.json").is_file()

    def test_no_temp_files_left_behind(self, store_dir, token_factory):
        store = FileTokenStore("my-api")
        store.write(token_factory())
        store.write(token_factory(access="A9"))
        assert sorted(p.name for p in store_dir.iterdir()) == ["my-api.json"]
        assert store.read() == Token(
            access_token="A9", refresh_token="R1", expires_at=token_factory().expires_at
        )
