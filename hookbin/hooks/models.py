"""Hook data model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Hook:
    """A registered webhook endpoint. The name is its identity."""

    name: str
