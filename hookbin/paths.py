"""Central path resolution for the data directory layout.

Every path hookbin reads or writes is a field or property of ``HookbinPaths``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class HookbinPaths:
    """Resolved, immutable paths derived from ``hookbin_home`` (default ``~/.hookbin``)."""

    hookbin_home: Path

    @property
    def config_dir(self) -> Path:
        return self.hookbin_home / "config"

    @property
    def config_path(self) -> Path:
        return self.config_dir / "config.json"

    @property
    def db_path(self) -> Path:
        return self.hookbin_home / "hooks.db"

    @property
    def sinks_dir(self) -> Path:
        """Captured deliveries, one file per request."""
        return self.hookbin_home / "log"

    @property
    def logs_dir(self) -> Path:
        return self.hookbin_home / "logs"


def resolve_paths(hookbin_home: str | Path | None = None) -> HookbinPaths:
    """Build HookbinPaths from an explicit value, ``$HOOKBIN_HOME`` or ``~/.hookbin``."""
    if hookbin_home is not None:
        home = Path(hookbin_home).expanduser().resolve()
    else:
        home = (
            Path(
                os.environ.get("HOOKBIN_HOME", str(Path.home() / ".hookbin")),
            )
            .expanduser()
            .resolve()
        )
    return HookbinPaths(hookbin_home=home)
