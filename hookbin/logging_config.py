"""Logging for the hookbin service.

Console output goes to stderr. With a log directory, records also land in two
rotating files written from a background ``QueueListener``:

- ``hookbin.log``: everything (startup, admin actions, deliveries).
- ``deliveries.log``: only records logged while handling a webhook delivery,
  i.e. the capture history.

Call ``setup_logging()`` at startup and ``shutdown_logging()`` before exit.
"""

from __future__ import annotations

import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from hookbin.log_context import ContextFilter

MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3

MAIN_LOG = "hookbin.log"
DELIVERY_LOG = "deliveries.log"
DELIVERY_OPERATION = "ingest"

CONSOLE_FMT = "%(asctime)s %(levelname)-8s %(name)s: %(ctx)s%(message)s"
FILE_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(ctx)s%(message)s"
DATE_FMT = "%H:%M:%S"
FILE_DATE_FMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)

_listener: QueueListener | None = None


class OperationFilter(logging.Filter):
    """Pass only records tagged with one operation by ``ContextFilter``."""

    def __init__(self, operation: str) -> None:
        super().__init__()
        self._operation = operation

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "operation", None) == self._operation


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FMT, datefmt=FILE_DATE_FMT))
    return handler


def setup_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_dir: Path | None = None,
) -> None:
    """(Re)configure the root logger.

    Safe to call again (e.g. once the config's ``log_level`` is known); the
    previous handlers and file listener are replaced.
    """
    if verbose:
        level = logging.DEBUG

    shutdown_logging()

    ctx_filter = ContextFilter()
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.addFilter(ctx_filter)
    console.setFormatter(logging.Formatter(CONSOLE_FMT, datefmt=DATE_FMT))
    root.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        deliveries = _file_handler(log_dir / DELIVERY_LOG, logging.INFO)
        deliveries.addFilter(OperationFilter(DELIVERY_OPERATION))

        # ContextFilter runs before the queue: the listener thread cannot see
        # the request's ContextVars.
        log_queue: queue.Queue[logging.LogRecord] = queue.Queue()
        queue_handler = QueueHandler(log_queue)
        queue_handler.addFilter(ctx_filter)
        root.addHandler(queue_handler)

        global _listener  # noqa: PLW0603
        _listener = QueueListener(
            log_queue,
            _file_handler(log_dir / MAIN_LOG, logging.DEBUG),
            deliveries,
            respect_handler_level=True,
        )
        _listener.start()

    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger.info("Logging initialized (level=%s)", logging.getLevelName(level))


def shutdown_logging() -> None:
    """Drain queued records to the log files and close them."""
    global _listener  # noqa: PLW0603
    if _listener is None:
        return
    _listener.stop()
    for handler in _listener.handlers:
        handler.close()
    _listener = None
