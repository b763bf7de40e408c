"""HTTP server: aiohttp-based admin pages and webhook capture.

Routes:
- ``GET  /health``               -- Health check for proxies and monitors.
- ``GET  /``                     -- List registered hooks.
- ``GET  /hooks/new``            -- Form for a new hook.
- ``POST /hooks``                -- Create a hook, then redirect to ``/``.
- ``GET  /hooks/{name}``         -- Show one hook.
- ``POST /hooks/{name}/delete``  -- Delete a hook, then redirect to ``/``.
- ``*    /h/{tail}``             -- Capture any request into a sink.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from aiohttp import web

from hookbin.errors import IngestError, RegistryError, StoreUnavailableError
from hookbin.ingest import RequestMetadata
from hookbin.log_context import set_log_context
from hookbin.views import DELIVERY_PREFIX, render_hook, render_index, render_new_hook

if TYPE_CHECKING:
    from hookbin.config import ServerConfig
    from hookbin.hooks import HookRegistry
    from hookbin.ingest import HookIngestor

logger = logging.getLogger(__name__)


def _remote_addr(request: web.Request) -> str:
    """``host:port`` of the peer, falling back to the bare host."""
    peer = request.transport.get_extra_info("peername") if request.transport else None
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return request.remote or "unknown"


def _html(text: str, status: int = 200) -> web.Response:
    return web.Response(text=text, status=status, content_type="text/html")


class HookServer:
    """HTTP server wiring the registry and the ingestor to routes."""

    def __init__(
        self,
        config: ServerConfig,
        registry: HookRegistry,
        ingestor: HookIngestor,
    ) -> None:
        self._config = config
        self._registry = registry
        self._ingestor = ingestor
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application(client_max_size=self._config.max_body_bytes)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/", self._handle_index)
        app.router.add_get("/hooks/new", self._handle_new_hook)
        app.router.add_post("/hooks", self._handle_create_hook)
        app.router.add_get("/hooks/{name}", self._handle_show_hook)
        app.router.add_post("/hooks/{name}/delete", self._handle_delete_hook)
        app.router.add_route("*", DELIVERY_PREFIX + "{tail:.*}", self._handle_delivery)
        return app

    async def start(self) -> None:
        """Create the aiohttp app and start listening."""
        self._runner = web.AppRunner(self.build_app(), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()
        logger.info("Server listening on %s:%d", self._config.host, self._config.port)

    async def stop(self) -> None:
        """Shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Server stopped")

    # -- Admin handlers --

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_index(self, _request: web.Request) -> web.Response:
        set_log_context(operation="admin")
        try:
            hooks = await asyncio.to_thread(self._registry.list_hooks)
        except RegistryError:
            logger.exception("Listing hooks failed")
            return web.Response(text="error", status=500)
        return _html(render_index(hooks))

    async def _handle_new_hook(self, _request: web.Request) -> web.Response:
        return _html(render_new_hook())

    async def _handle_create_hook(self, request: web.Request) -> web.Response:
        set_log_context(operation="admin")
        form = await request.post()
        name = form.get("name", "")
        # The admin always lands back on the index; failures only reach the log.
        try:
            await asyncio.to_thread(self._registry.create_hook, str(name))
        except RegistryError as exc:
            logger.warning("Error creating hook %r: %s", name, exc)
        raise web.HTTPSeeOther("/")

    async def _handle_show_hook(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        set_log_context(operation="admin", hook=name)
        try:
            hook = await asyncio.to_thread(self._registry.find_hook, name)
        except RegistryError as exc:
            logger.debug("Hook lookup failed: %s", exc)
            raise web.HTTPNotFound from exc
        return _html(render_hook(hook))

    async def _handle_delete_hook(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        set_log_context(operation="admin", hook=name)
        # Same as create: redirect whatever the outcome.
        try:
            await asyncio.to_thread(self._registry.delete_hook, name)
        except RegistryError as exc:
            logger.warning("Error deleting hook %r: %s", name, exc)
        raise web.HTTPSeeOther("/")

    # -- Webhook capture --

    async def _handle_delivery(self, request: web.Request) -> web.Response:
        hook_name = request.match_info["tail"].split("/", 1)[0]
        set_log_context(operation="ingest", hook=hook_name or None)

        if self._config.registered_only:
            try:
                registered = await asyncio.to_thread(self._registry.has_hook, hook_name)
            except StoreUnavailableError:
                logger.exception("Hook lookup failed during delivery")
                return web.Response(text="error", status=500)
            if not registered:
                logger.warning("Delivery rejected: unregistered hook")
                return web.Response(text="not found", status=404)

        metadata = RequestMetadata(
            remote=_remote_addr(request),
            method=request.method,
            target=request.raw_path,
        )
        try:
            result = await self._ingestor.ingest(metadata, request.headers, request.content)
        except IngestError as exc:
            logger.error("Delivery failed: %s", exc)  # noqa: TRY400
            return web.Response(text="error", status=500)

        logger.info("[received] %s %s -> %s", request.method, request.raw_path, result.sink_id)
        return web.Response(status=200)
