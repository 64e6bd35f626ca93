"""
Main entry point: serves the status page and runs the periodic checks.

Starts the aiohttp web server (JSON API + static page), opens the Docker
and HTTP sessions used for probing, runs the StatusMonitor in the same
event loop, and handles graceful shutdown on Ctrl+C / SIGTERM.

Usage:
    python -m statuspage
    statuspage
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from pathlib import Path

import aiohttp_cors
from aiohttp import web

from statuspage.config import ConfigError, config_path, load_config
from statuspage.models import MonitorSettings
from statuspage.monitor import StatusMonitor
from statuspage.probes import HttpProbeAdapter, docker_session, http_session
from statuspage.store import JsonStatusStore, StoreError
from statuspage import notifier

PUBLIC_DIR = Path(__file__).resolve().parent.parent / "public"

STORE_KEY = web.AppKey("store", JsonStatusStore)


async def _status(request: web.Request) -> web.Response:
    try:
        return web.json_response(request.app[STORE_KEY].read_snapshot_document())
    except StoreError:
        return web.json_response({"error": "Failed to read status"}, status=500)


async def _history(request: web.Request) -> web.Response:
    try:
        return web.json_response(request.app[STORE_KEY].read_history_document())
    except StoreError:
        return web.json_response({"error": "Failed to read history"}, status=500)


async def _config(request: web.Request) -> web.Response:
    try:
        services = request.app[STORE_KEY].load_config()
    except ConfigError:
        return web.json_response({"error": "Failed to read config"}, status=500)
    return web.json_response({"services": [s.to_dict() for s in services]})


async def _health(_: web.Request) -> web.Response:
    return web.json_response({"status": "healthy"})


async def _index(_: web.Request) -> web.StreamResponse:
    index = PUBLIC_DIR / "index.html"
    if not index.exists():
        raise web.HTTPNotFound()
    return web.FileResponse(index)


def create_app(store: JsonStatusStore) -> web.Application:
    """Build the status page web application around ``store``."""
    app = web.Application()
    app[STORE_KEY] = store
    app.router.add_get("/", _index)

    # JSON endpoints are readable from any origin
    cors = aiohttp_cors.setup(app, defaults={
        "*": aiohttp_cors.ResourceOptions(allow_headers="*", expose_headers="*"),
    })
    for path, handler in (
        ("/api/status", _status),
        ("/api/history", _history),
        ("/api/config", _config),
        ("/health", _health),
    ):
        cors.add(app.router.add_get(path, handler))
    if PUBLIC_DIR.is_dir():
        app.router.add_static("/static", PUBLIC_DIR)
    return app


def _handle_signals(task: asyncio.Task, loop: asyncio.AbstractEventLoop) -> None:
    """Register signal handlers for graceful shutdown."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: _do_shutdown(task))
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass


def _do_shutdown(task: asyncio.Task) -> None:
    """Trigger graceful shutdown."""
    notifier.print_shutdown()
    task.cancel()


async def serve(services_count: int, settings: MonitorSettings, port: int) -> None:
    """Run web server and monitor until cancelled."""
    store = JsonStatusStore(settings.data_dir, config_path())
    store.initialize()

    runner = web.AppRunner(create_app(store))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    notifier.print_server_start(port)

    try:
        async with docker_session(settings.docker_socket) as docker, http_session() as http:
            probes = HttpProbeAdapter(docker, http, timeout=settings.probe_timeout)
            monitor = StatusMonitor(store, probes, settings)
            notifier.print_monitoring_start(services_count, settings.check_interval)
            await monitor.start()
    finally:
        await runner.cleanup()


async def async_main() -> None:
    """Async entry point."""
    notifier.print_banner()
    try:
        services, settings = load_config()
    except ConfigError as exc:
        notifier.print_config_error(str(exc))
        raise SystemExit(1) from exc

    port = int(os.environ.get("PORT", 3000))
    task = asyncio.create_task(serve(len(services), settings, port), name="statuspage")
    _handle_signals(task, asyncio.get_running_loop())

    try:
        await task
    except asyncio.CancelledError:
        pass


def main() -> None:
    """Sync entry point."""
    try:
        asyncio.run(async_main())
    except StoreError as exc:
        notifier.print_error("Startup", str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        # Signal handler already printed shutdown message
        sys.exit(0)


if __name__ == "__main__":
    main()
