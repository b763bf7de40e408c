"""File-backed sink store: one append-only artifact per captured delivery."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from hookbin.errors import SinkCreateError

logger = logging.getLogger(__name__)

SINK_SUFFIX = ".log"


class SinkHandle:
    """Scoped writable handle for one sink artifact.

    Writes go to the file in order. Leaving the ``with`` block (or calling
    ``close()``) flushes, fsyncs and closes the file, whatever the outcome.
    """

    def __init__(self, identifier: str, path: Path, fh: BinaryIO) -> None:
        self.identifier = identifier
        self.path = path
        self._fh = fh
        self.bytes_written = 0

    @property
    def closed(self) -> bool:
        return self._fh.closed

    def write(self, data: bytes) -> None:
        self._fh.write(data)
        self.bytes_written += len(data)

    def close(self) -> None:
        if self._fh.closed:
            return
        try:
            self._fh.flush()
            os.fsync(self._fh.fileno())
        finally:
            self._fh.close()

    def __enter__(self) -> SinkHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class SinkStore:
    """Creates sink artifacts as ``<directory>/<identifier>.log``."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, identifier: str) -> Path:
        return self._directory / f"{identifier}{SINK_SUFFIX}"

    def create_sink(self, identifier: str) -> SinkHandle:
        """Create a new artifact exclusively. Raises SinkCreateError on any failure."""
        path = self.path_for(identifier)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fh = path.open("xb")
        except OSError as exc:
            msg = f"error creating sink {path}: {exc}"
            raise SinkCreateError(msg) from exc
        logger.debug("Sink created: %s", path)
        return SinkHandle(identifier, path, fh)

    def count(self) -> int:
        """Number of sink artifacts on disk."""
        if not self._directory.is_dir():
            return 0
        return sum(1 for _ in self._directory.glob(f"*{SINK_SUFFIX}"))
