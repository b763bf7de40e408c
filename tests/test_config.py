"""Tests for configuration models and loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from hookbin.config import AppConfig, IngestConfig, ServerConfig, deep_merge_config, load_config
from hookbin.errors import ConfigError
from hookbin.paths import HookbinPaths

# -- Defaults --


def test_app_config_defaults() -> None:
    cfg = AppConfig()
    assert cfg.log_level == "INFO"
    assert cfg.hookbin_home == "~/.hookbin"
    assert cfg.server.host == "127.0.0.1"
    assert cfg.server.port == 8080
    assert cfg.server.registered_only is False
    assert cfg.ingest.chunk_size == 65536


def test_server_config_rejects_invalid_types() -> None:
    with pytest.raises(ValidationError, match="port"):
        ServerConfig(port="not_a_number")  # type: ignore[arg-type]


def test_ingest_chunk_size_must_be_positive() -> None:
    with pytest.raises(ValidationError, match="chunk_size"):
        IngestConfig(chunk_size=0)


# -- deep_merge_config --


def test_deep_merge_adds_new_keys() -> None:
    user: dict[str, object] = {"log_level": "DEBUG"}
    defaults: dict[str, object] = {"log_level": "INFO", "hookbin_home": "~/.hookbin"}
    merged, changed = deep_merge_config(user, defaults)
    assert merged["log_level"] == "DEBUG"
    assert merged["hookbin_home"] == "~/.hookbin"
    assert changed is True


def test_deep_merge_nested() -> None:
    user: dict[str, object] = {"server": {"port": 9000}}
    defaults: dict[str, object] = {"server": {"port": 8080, "host": "127.0.0.1"}}
    merged, changed = deep_merge_config(user, defaults)
    assert merged["server"] == {"port": 9000, "host": "127.0.0.1"}
    assert changed is True


def test_deep_merge_unchanged() -> None:
    user: dict[str, object] = {"a": 1, "b": {"c": 2}}
    merged, changed = deep_merge_config(user, {"a": 0, "b": {"c": 0}})
    assert merged == user
    assert changed is False


# -- load_config --


class TestLoadConfig:
    def test_creates_default_config(self, tmp_path: Path) -> None:
        paths = HookbinPaths(hookbin_home=tmp_path)
        cfg = load_config(paths)
        assert paths.config_path.exists()
        assert cfg.hookbin_home == str(tmp_path)
        data = json.loads(paths.config_path.read_text())
        assert data["server"]["port"] == 8080

    def test_preserves_user_values_and_adds_new_keys(self, tmp_path: Path) -> None:
        paths = HookbinPaths(hookbin_home=tmp_path)
        paths.config_dir.mkdir(parents=True)
        paths.config_path.write_text(json.dumps({"server": {"port": 9999}}))

        cfg = load_config(paths)

        assert cfg.server.port == 9999
        assert cfg.server.host == "127.0.0.1"
        data = json.loads(paths.config_path.read_text())
        assert data["server"]["port"] == 9999
        assert "ingest" in data

    def test_corrupt_json_raises(self, tmp_path: Path) -> None:
        paths = HookbinPaths(hookbin_home=tmp_path)
        paths.config_dir.mkdir(parents=True)
        paths.config_path.write_text("{not json")
        with pytest.raises(ConfigError, match="failed to read config"):
            load_config(paths)

    def test_non_object_raises(self, tmp_path: Path) -> None:
        paths = HookbinPaths(hookbin_home=tmp_path)
        paths.config_dir.mkdir(parents=True)
        paths.config_path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(paths)

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        paths = HookbinPaths(hookbin_home=tmp_path)
        paths.config_dir.mkdir(parents=True)
        paths.config_path.write_text(json.dumps({"server": {"port": "abc"}}))
        with pytest.raises(ConfigError, match="invalid config"):
            load_config(paths)
