"""Logging context: ContextVar-based log enrichment for request handling.

Every log record is automatically enriched with a ``[op:hook:sink]`` prefix
via a `ContextFilter` attached to the root logger handlers.

Operation codes: ``admin`` (admin page or mutation), ``ingest`` (webhook delivery).
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

# Each aiohttp request runs in its own task, so values never leak between requests.
ctx_operation: ContextVar[str | None] = ContextVar("ctx_operation", default=None)
ctx_hook: ContextVar[str | None] = ContextVar("ctx_hook", default=None)
ctx_sink_id: ContextVar[str | None] = ContextVar("ctx_sink_id", default=None)


class ContextFilter(logging.Filter):
    """Inject ContextVar values into every LogRecord.

    Sets ``record.ctx`` (the rendered prefix) and ``record.operation`` (the
    bare operation code, or None) so handlers on other threads can route on it.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        op = ctx_operation.get(None)
        hook = ctx_hook.get(None)
        sink = ctx_sink_id.get(None)
        parts: list[str] = []
        if op:
            parts.append(op)
        if hook:
            parts.append(hook)
        if sink:
            # hook_<date>_<time>_<hex>: the random tail is enough to grep for
            parts.append(sink.rsplit("_", 1)[-1][:8])
        record.operation = op
        record.ctx = f"[{':'.join(parts)}] " if parts else ""
        return True


def set_log_context(
    *,
    operation: str | None = None,
    hook: str | None = None,
    sink_id: str | None = None,
) -> None:
    """Set logging context for the current asyncio task.

    Values propagate to all coroutines called within the same task.
    """
    if operation is not None:
        ctx_operation.set(operation)
    if hook is not None:
        ctx_hook.set(hook)
    if sink_id is not None:
        ctx_sink_id.set(sink_id)
