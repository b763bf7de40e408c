"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from hookbin.hooks import HookRegistry
from hookbin.ingest import HookIngestor, SinkStore
from hookbin.store import KeyValueStore


@pytest.fixture
def tmp_hookbin_home(tmp_path: Path) -> Path:
    """Temporary ~/.hookbin equivalent."""
    home = tmp_path / ".hookbin"
    home.mkdir()
    return home


@pytest.fixture
def store(tmp_hookbin_home: Path) -> KeyValueStore:
    kv = KeyValueStore(tmp_hookbin_home / "hooks.db")
    kv.open()
    return kv


@pytest.fixture
def registry(store: KeyValueStore) -> HookRegistry:
    return HookRegistry(store)


@pytest.fixture
def sinks(tmp_hookbin_home: Path) -> SinkStore:
    return SinkStore(tmp_hookbin_home / "log")


@pytest.fixture
def ingestor(sinks: SinkStore) -> HookIngestor:
    return HookIngestor(sinks, chunk_size=4)
