"""Tests for ContextVar-based log enrichment."""

from __future__ import annotations

import asyncio
import contextvars
import logging

from hookbin.log_context import ContextFilter, set_log_context


def _ctx_of_record() -> str:
    record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
    ContextFilter().filter(record)
    return record.ctx  # type: ignore[attr-defined]


def test_empty_context_has_no_prefix() -> None:
    assert contextvars.Context().run(_ctx_of_record) == ""


def test_operation_and_hook() -> None:
    def _run() -> str:
        set_log_context(operation="admin", hook="stripe-events")
        return _ctx_of_record()

    assert contextvars.Context().run(_run) == "[admin:stripe-events] "


def test_sink_id_shortened_to_random_part() -> None:
    def _run() -> str:
        set_log_context(operation="ingest", sink_id="hook_2026-10-19_09-30-15_0123456789abcdef")
        return _ctx_of_record()

    assert contextvars.Context().run(_run) == "[ingest:01234567] "


async def test_context_does_not_leak_between_tasks() -> None:
    async def _deliver(name: str) -> str:
        set_log_context(operation="ingest", hook=name)
        await asyncio.sleep(0)
        return _ctx_of_record()

    first, second = await asyncio.gather(
        asyncio.create_task(_deliver("one")), asyncio.create_task(_deliver("two"))
    )
    assert first == "[ingest:one] "
    assert second == "[ingest:two] "


def test_operation_attribute_set() -> None:
    def _run() -> object:
        set_log_context(operation="ingest")
        record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
        ContextFilter().filter(record)
        return record.operation  # type: ignore[attr-defined]

    assert contextvars.Context().run(_run) == "ingest"
