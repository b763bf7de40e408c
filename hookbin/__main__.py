"""Entry point: python -m hookbin."""

from __future__ import annotations

import asyncio
import logging
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from hookbin.config import AppConfig, load_config
from hookbin.errors import HookbinError
from hookbin.hooks import HookRegistry
from hookbin.ingest import HookIngestor, SinkStore
from hookbin.logging_config import setup_logging, shutdown_logging
from hookbin.paths import HookbinPaths, resolve_paths
from hookbin.server import HookServer
from hookbin.store import KeyValueStore

logger = logging.getLogger(__name__)

_console = Console()


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def build_server(config: AppConfig, paths: HookbinPaths) -> tuple[HookServer, KeyValueStore]:
    """Open the store and wire registry, ingestor and server together."""
    store = KeyValueStore(paths.db_path)
    store.open()
    registry = HookRegistry(store)
    ingestor = HookIngestor(
        SinkStore(paths.sinks_dir),
        chunk_size=config.ingest.chunk_size,
        max_body_bytes=config.server.max_body_bytes,
    )
    return HookServer(config.server, registry, ingestor), store


async def run_server(config: AppConfig, paths: HookbinPaths) -> None:
    """Serve until cancelled (Ctrl+C)."""
    server, store = build_server(config, paths)
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()
        store.close()


def _serve(verbose: bool = False) -> None:
    paths = resolve_paths()
    setup_logging(verbose=verbose, log_dir=paths.logs_dir)
    try:
        _load_and_run(paths, verbose)
    finally:
        shutdown_logging()


def _load_and_run(paths: HookbinPaths, verbose: bool) -> None:
    try:
        config = load_config(paths)
    except HookbinError:
        logger.exception("Cannot start")
        sys.exit(1)
    if not verbose:
        config_level = getattr(logging, config.log_level.upper(), logging.INFO)
        if config_level != logging.INFO:
            setup_logging(level=config_level, log_dir=paths.logs_dir)
    paths = resolve_paths(config.hookbin_home)
    try:
        asyncio.run(run_server(config, paths))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except HookbinError:
        logger.exception("Server failed")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Help & Status
# ---------------------------------------------------------------------------


def _print_usage() -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold green", min_width=20)
    table.add_column()
    table.add_row("hookbin", "Start the server (admin pages + webhook capture)")
    table.add_row("hookbin serve", "Same as above")
    table.add_row("hookbin status", "Show paths, hook count and captured deliveries")
    table.add_row("hookbin help", "Show this message")
    table.add_row("-v, --verbose", "Verbose logging output")
    _console.print()
    _console.print(
        Panel(table, title="[bold]Commands[/bold]", border_style="blue", padding=(1, 0)),
    )
    _console.print()


def _build_status_lines(paths: HookbinPaths, hook_count: int | None, sink_count: int) -> list[str]:
    lines: list[str] = []
    if hook_count is None:
        lines.append("Hooks:      [bold red]store unavailable[/bold red]")
    else:
        lines.append(f"Hooks:      [cyan]{hook_count}[/cyan]")
    lines.append(f"Deliveries: [cyan]{sink_count}[/cyan]")
    lines.append("")
    lines.append("[bold]Paths:[/bold]")
    lines.append(f"  Home:       [cyan]{paths.hookbin_home}[/cyan]")
    lines.append(f"  Config:     [cyan]{paths.config_path}[/cyan]")
    lines.append(f"  Database:   [cyan]{paths.db_path}[/cyan]")
    lines.append(f"  Deliveries: [cyan]{paths.sinks_dir}[/cyan]")
    lines.append(f"  Logs:       [cyan]{paths.logs_dir}[/cyan]")
    return lines


def _print_status() -> None:
    paths = resolve_paths()
    hook_count: int | None = None
    if paths.db_path.exists():
        try:
            store = KeyValueStore(paths.db_path)
            hook_count = len(HookRegistry(store).list_hooks())
        except HookbinError as exc:
            logger.debug("Status: store unavailable: %s", exc)
    else:
        hook_count = 0
    sink_count = SinkStore(paths.sinks_dir).count()
    _console.print(
        Panel(
            "\n".join(_build_status_lines(paths, hook_count, sink_count)),
            title="[bold]Status[/bold]",
            border_style="green",
            padding=(1, 2),
        ),
    )


_COMMANDS: dict[str, str] = {
    "help": "help",
    "serve": "serve",
    "status": "status",
}


def main() -> None:
    """CLI entry point."""
    args = sys.argv[1:]
    commands = {a for a in args if not a.startswith("-")}
    verbose = "--verbose" in args or "-v" in args

    if "--help" in args or "-h" in args:
        commands.add("help")

    action = next((_COMMANDS[c] for c in commands if c in _COMMANDS), "serve")

    if action == "help":
        _print_usage()
    elif action == "status":
        _print_status()
    else:
        _serve(verbose)


if __name__ == "__main__":
    main()
