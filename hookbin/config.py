"""Application configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from hookbin.errors import ConfigError

if TYPE_CHECKING:
    from hookbin.paths import HookbinPaths

logger = logging.getLogger(__name__)


class ServerConfig(BaseModel):
    """Settings for the HTTP server carrying the admin and webhook surfaces."""

    host: str = "127.0.0.1"
    port: int = 8080
    max_body_bytes: int = 10 * 1024 * 1024
    # Only capture deliveries addressed to a registered hook (404 otherwise).
    registered_only: bool = False


class IngestConfig(BaseModel):
    """Settings for webhook capture."""

    chunk_size: int = Field(default=64 * 1024, gt=0)


class AppConfig(BaseModel):
    """Top-level configuration loaded from config.json."""

    log_level: str = "INFO"
    hookbin_home: str = "~/.hookbin"
    server: ServerConfig = Field(default_factory=ServerConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)


def deep_merge_config(
    user: dict[str, object],
    defaults: dict[str, object],
) -> tuple[dict[str, object], bool]:
    """Recursively merge *defaults* into *user*, preserving user values.

    Returns ``(merged_dict, changed)`` where *changed* is True when new keys were added.
    """
    result: dict[str, object] = dict(user)
    changed = False
    new_keys = 0
    for key, default_val in defaults.items():
        if key not in result:
            result[key] = default_val
            changed = True
            new_keys += 1
        elif isinstance(default_val, dict) and isinstance(result[key], dict):
            sub_merged, sub_changed = deep_merge_config(
                result[key],  # type: ignore[arg-type]
                default_val,
            )
            result[key] = sub_merged
            changed = changed or sub_changed
    if new_keys:
        logger.info("Config deep-merge: %d new keys added", new_keys)
    return result, changed


def _write_json(data: dict[str, object], paths: HookbinPaths) -> None:
    paths.config_path.parent.mkdir(parents=True, exist_ok=True)
    paths.config_path.write_text(
        json.dumps(data, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


def load_config(paths: HookbinPaths) -> AppConfig:
    """Load, auto-create, and smart-merge the config at ``paths.config_path``.

    On first start the Pydantic defaults are written out. On every load the
    file is deep-merged with the current defaults so new fields are added
    without touching user settings.
    """
    config_path = paths.config_path
    defaults = AppConfig(hookbin_home=str(paths.hookbin_home)).model_dump(mode="json")

    if not config_path.exists():
        _write_json(defaults, paths)
        logger.info("Created default config at %s", config_path)

    try:
        user_data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        msg = f"failed to read config at {config_path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(user_data, dict):
        msg = f"config at {config_path} must be a JSON object"
        raise ConfigError(msg)

    merged, changed = deep_merge_config(user_data, defaults)
    if changed:
        _write_json(merged, paths)
        logger.info("Extended config with new default fields")

    try:
        return AppConfig.model_validate(merged)
    except ValidationError as exc:
        msg = f"invalid config at {config_path}: {exc}"
        raise ConfigError(msg) from exc
