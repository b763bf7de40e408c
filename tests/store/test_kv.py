"""Tests for the SQLite-backed key-value store."""

from __future__ import annotations

from pathlib import Path

import pytest

from hookbin.errors import StoreUnavailableError
from hookbin.store import KeyValueStore


class TestOpen:
    def test_creates_parent_directory_and_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "hooks.db"
        KeyValueStore(path).open()
        assert path.is_file()

    def test_open_is_repeatable(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b").put(b"k", b"v")
        store.open()
        with store.view() as tx:
            assert tx.bucket("b").get(b"k") == b"v"

    def test_unusable_path_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(StoreUnavailableError):
            KeyValueStore(blocker / "hooks.db").open()


class TestBuckets:
    def test_missing_bucket_raises(self, store: KeyValueStore) -> None:
        with pytest.raises(StoreUnavailableError, match="does not exist"), store.view() as tx:
            tx.bucket("nope")

    def test_create_bucket_is_idempotent(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b").put(b"k", b"v")
        with store.update() as tx:
            tx.create_bucket("b")
        with store.view() as tx:
            assert tx.bucket("b").keys() == [b"k"]

    def test_buckets_are_isolated(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("a").put(b"k", b"1")
            tx.create_bucket("b").put(b"k", b"2")
        with store.view() as tx:
            assert tx.bucket("a").get(b"k") == b"1"
            assert tx.bucket("b").get(b"k") == b"2"


class TestTransactions:
    def test_update_commits(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b").put(b"key", b"value")
        with store.view() as tx:
            assert tx.bucket("b").get(b"key") == b"value"

    def test_get_missing_returns_none(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b")
        with store.view() as tx:
            assert tx.bucket("b").get(b"missing") is None

    def test_empty_value_is_not_missing(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b").put(b"key", b"")
        with store.view() as tx:
            assert tx.bucket("b").get(b"key") == b""

    def test_error_in_update_rolls_back(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b")

        with pytest.raises(RuntimeError), store.update() as tx:
            bucket = tx.bucket("b")
            bucket.put(b"one", b"")
            bucket.put(b"two", b"")
            raise RuntimeError("abort")

        with store.view() as tx:
            assert tx.bucket("b").keys() == []

    def test_view_rejects_writes(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b")
        with pytest.raises(StoreUnavailableError, match="read-only"), store.view() as tx:
            tx.bucket("b").put(b"k", b"v")

    def test_view_rejects_create_bucket(self, store: KeyValueStore) -> None:
        with pytest.raises(StoreUnavailableError, match="read-only"), store.view() as tx:
            tx.create_bucket("b")

    def test_delete_missing_key_is_noop(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b").delete(b"ghost")

    def test_put_overwrites(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            tx.create_bucket("b").put(b"k", b"1")
        with store.update() as tx:
            tx.bucket("b").put(b"k", b"2")
        with store.view() as tx:
            assert tx.bucket("b").get(b"k") == b"2"


class TestOrdering:
    def test_keys_are_bytewise_sorted(self, store: KeyValueStore) -> None:
        with store.update() as tx:
            bucket = tx.create_bucket("b")
            for key in (b"b", b"a-z", b"a", b"0", b"c", b"a-"):
                bucket.put(key, b"")
        with store.view() as tx:
            assert tx.bucket("b").keys() == [b"0", b"a", b"a-", b"a-z", b"b", b"c"]
