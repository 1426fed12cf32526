"""Asyncio HTTP server for the calendar filter.

This module wires the routes and middlewares into an aiohttp application and
runs it until SIGINT/SIGTERM. Each request fetches the upstream calendar,
filters it and returns it; nothing is cached between requests.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any

from aiohttp import web

from ..calendar import DEFAULT_FOLD_WIDTH
from ..config_manager import DEFAULT_SERVER_BIND, DEFAULT_SERVER_PORT, get_config_value
from ..core.http_client import close_all_clients, get_shared_client
from ..fetcher import UpstreamFetcher
from ..logging_config import configure_logging
from ..middleware import correlation_id_middleware, real_ip_middleware
from .routes import CONFIG_KEY, FETCHER_KEY, register_routes

logger = logging.getLogger(__name__)


def make_app(config: dict[str, Any], fetcher: UpstreamFetcher | None = None) -> web.Application:
    """Create the aiohttp application.

    Args:
        config: Configuration dict; ``upstream_url`` is required
        fetcher: Optional fetcher, mainly for tests; one using the shared
            HTTP client is created otherwise

    Raises:
        ValueError: If no upstream URL is configured
    """
    if not get_config_value(config, "upstream_url"):
        raise ValueError("No upstream URL configured")
    if int(get_config_value(config, "fold_width", DEFAULT_FOLD_WIDTH)) < 1:
        raise ValueError("fold_width must be positive")

    # real_ip runs first so that every later middleware and handler sees the client address
    app = web.Application(middlewares=[real_ip_middleware, correlation_id_middleware])
    app[CONFIG_KEY] = config
    app[FETCHER_KEY] = fetcher or UpstreamFetcher(config)
    register_routes(app)

    async def _close_clients(_app: web.Application) -> None:
        await close_all_clients()

    app.on_cleanup.append(_close_clients)
    return app


async def _serve(config: dict[str, Any], external_stop_event: asyncio.Event | None = None) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration dict.
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers are not registered (caller owns signal handling).
    """
    stop_event = external_stop_event or asyncio.Event()

    # Warm the shared client so the first request does not pay for it
    client = await get_shared_client("upstream")
    app = make_app(config, UpstreamFetcher(config, client))

    runner = web.AppRunner(app)
    await runner.setup()

    host = get_config_value(config, "server_bind", DEFAULT_SERVER_BIND)
    port = int(get_config_value(config, "server_port", DEFAULT_SERVER_PORT))
    site = web.TCPSite(runner, host=host, port=port)
    try:
        await site.start()
    except OSError:
        logger.exception("Failed to start server on %s:%d", host, port)
        await runner.cleanup()
        raise

    logger.info("Listening on http://%s:%d", host, port)

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)
    else:
        logger.debug("Using external stop event - skipping signal handler registration")

    await stop_event.wait()
    logger.info("Stop event received, shutting down")

    # on_cleanup closes the shared HTTP clients
    await runner.cleanup()
    logger.info("Server shutdown complete")


def start_server(config: dict[str, Any]) -> None:
    """Start the asyncio event loop and HTTP server.

    Args:
        config: dict with keys:
            - upstream_url: calendar to filter (str, required)
            - server_bind: host to bind (str, default 0.0.0.0)
            - server_port: port (int, default 8080)
            - fold_width: output line width in bytes (int, default 75)
            - selector: property driving the filter (str, default SUMMARY)
            - request_timeout: upstream timeout in seconds (int, default 30)
            - debug_logging: enable debug logging (bool)

    This function blocks the calling thread until SIGINT/SIGTERM is received.
    """
    configure_logging(debug_mode=bool(get_config_value(config, "debug_logging", False)))

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
