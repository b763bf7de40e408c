"""Webhook ingestion: capture one inbound request into its own sink artifact.

A delivery moves through ``SinkOpen -> MetadataWritten -> BodyCopying`` and
ends either committed (the full body was copied) or failed. Failed deliveries
leave their truncated artifact on disk; the producer is expected to redeliver.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from hookbin.errors import BodyCopyError
from hookbin.log_context import set_log_context

if TYPE_CHECKING:
    from hookbin.ingest.sink import SinkHandle, SinkStore

logger = logging.getLogger(__name__)

SINK_ID_PREFIX = "hook"
SINK_ID_TIME_FMT = "%Y-%m-%d_%H-%M-%S"
SINK_ID_RANDOM_BYTES = 8
DEFAULT_CHUNK_SIZE = 64 * 1024

Headers = Mapping[str, str] | Iterable[tuple[str, str]]


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class RequestMetadata:
    """Request line and origin of one inbound delivery."""

    remote: str
    method: str
    target: str
    received_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a committed delivery."""

    sink_id: str
    path: Path
    body_bytes: int


def new_sink_id(now: datetime | None = None) -> str:
    """Return ``hook_<YYYY-MM-DD_HH-MM-SS>_<16 hex chars>``.

    The random part makes identifiers collision-resistant for deliveries
    arriving within the same second.
    """
    stamp = (now or _now()).strftime(SINK_ID_TIME_FMT)
    return f"{SINK_ID_PREFIX}_{stamp}_{secrets.token_hex(SINK_ID_RANDOM_BYTES)}"


def group_headers(headers: Headers) -> dict[str, list[str]]:
    """Collect header values per name, keeping every value of repeated headers.

    Names are grouped case-insensitively under their first spelling.
    """
    pairs: Iterable[tuple[str, str]] = (
        headers.items() if isinstance(headers, Mapping) else headers
    )
    grouped: dict[str, list[str]] = {}
    spelling: dict[str, str] = {}
    for name, value in pairs:
        key = spelling.setdefault(name.lower(), name)
        grouped.setdefault(key, []).append(value)
    return grouped


def render_preamble(metadata: RequestMetadata, headers: Headers) -> bytes:
    """Render everything written before the raw body."""
    lines = [
        f"Hook received {metadata.received_at}",
        f"From {metadata.remote}",
        "",
        f"{metadata.method} {metadata.target}",
        "",
        "Headers:",
    ]
    lines.extend(
        f"{name} = [{' '.join(values)}]" for name, values in group_headers(headers).items()
    )
    lines.extend(["", "Body:", ""])
    return "\n".join(lines).encode("utf-8", errors="surrogateescape")


async def _iter_body(body: Any, chunk_size: int) -> AsyncIterator[bytes]:
    if isinstance(body, bytes | bytearray):
        if body:
            yield bytes(body)
        return
    iter_chunked = getattr(body, "iter_chunked", None)
    if iter_chunked is not None:
        async for chunk in iter_chunked(chunk_size):
            yield chunk
        return
    async for chunk in body:
        yield chunk


class HookIngestor:
    """Captures inbound deliveries into sinks created by a SinkStore.

    Deliveries share nothing but the sink directory, so concurrent calls need
    no coordination.
    """

    def __init__(
        self,
        sinks: SinkStore,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_body_bytes: int | None = None,
    ) -> None:
        self._sinks = sinks
        self._chunk_size = chunk_size
        self._max_body_bytes = max_body_bytes

    async def ingest(
        self,
        metadata: RequestMetadata,
        headers: Headers,
        body: bytes | AsyncIterable[bytes],
    ) -> IngestResult:
        """Persist one delivery. Raises SinkCreateError or BodyCopyError.

        Sink creation, writes and the final flush and fsync run on worker
        threads via ``asyncio.to_thread``.
        """
        sink_id = new_sink_id(metadata.received_at)
        set_log_context(sink_id=sink_id)

        sink = await asyncio.to_thread(self._sinks.create_sink, sink_id)
        try:
            try:
                await asyncio.to_thread(sink.write, render_preamble(metadata, headers))
            except OSError as exc:
                msg = f"error writing delivery metadata to {sink.path}: {exc}"
                raise BodyCopyError(msg) from exc
            body_bytes = await self._copy_body(sink, body)
        finally:
            await self._release(sink)

        logger.debug("Delivery committed: %s (%d body bytes)", sink.path, body_bytes)
        return IngestResult(sink_id=sink_id, path=sink.path, body_bytes=body_bytes)

    async def _release(self, sink: SinkHandle) -> None:
        try:
            await asyncio.to_thread(sink.close)
        except OSError as exc:
            msg = f"error flushing sink {sink.path}: {exc}"
            raise BodyCopyError(msg) from exc

    async def _copy_body(self, sink: SinkHandle, body: bytes | AsyncIterable[bytes]) -> int:
        copied = 0
        try:
            async for chunk in _iter_body(body, self._chunk_size):
                copied += len(chunk)
                if self._max_body_bytes is not None and copied > self._max_body_bytes:
                    msg = f"body exceeds {self._max_body_bytes} bytes"
                    raise BodyCopyError(msg)
                await asyncio.to_thread(sink.write, chunk)
        except BodyCopyError:
            raise
        except Exception as exc:
            msg = f"error copying request body to {sink.path}: {exc}"
            raise BodyCopyError(msg) from exc
        return copied

