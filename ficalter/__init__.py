"""ficalter - filtering proxy for ICS calendar subscriptions.

Fetches an upstream calendar, keeps or drops its top-level components based on
their SUMMARY, and serves the result as a fresh ICS document.
"""

__version__ = "0.1.0"

from typing import Any, Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to the console.

    Honors FICALTER_DEBUG (truthy values: "1", "true", "yes", "on") which forces
    DEBUG verbosity without changing code.
    """
    import logging
    import os

    from .logging_config import build_console_handler

    debug_env = os.environ.get("FICALTER_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none is present to avoid duplicate output.
    if not root.handlers:
        root.addHandler(build_console_handler())

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def _resolve_config(args: Any) -> dict:
    """Merge environment/.env configuration with command line overrides."""
    from .config_manager import ConfigManager

    cfg = ConfigManager().load_full_config()

    upstream = getattr(args, "upstream", None)
    if upstream:
        cfg["upstream_url"] = upstream
    port = getattr(args, "port", None)
    if port is not None:
        cfg["server_port"] = int(port)
    if getattr(args, "debug", False):
        cfg["debug_logging"] = True
    return cfg


def run_smoke_test(cfg: dict) -> None:
    """Run one fetch/parse/filter/serialize pass against the upstream.

    Raises:
        UpstreamFetchError: The upstream could not be fetched
        IcsError: The upstream document is malformed
    """
    import asyncio
    import logging

    from .calendar import DEFAULT_FOLD_WIDTH, DEFAULT_SELECTOR
    from .core.http_client import close_all_clients
    from .fetcher import UpstreamFetcher
    from .pipeline import fetch_and_process, smoke_test_policy

    logger = logging.getLogger(__name__)

    async def _once() -> bytes:
        try:
            return await fetch_and_process(
                cfg["upstream_url"],
                smoke_test_policy(),
                fetcher=UpstreamFetcher(cfg),
                selector=cfg.get("selector", DEFAULT_SELECTOR),
                width=cfg.get("fold_width", DEFAULT_FOLD_WIDTH),
            )
        finally:
            await close_all_clients()

    logger.info("Running smoke test against %s", cfg["upstream_url"])
    body = asyncio.run(_once())
    logger.info("Smoke test passed (%d bytes)", len(body))


def run_server(args: Optional[object] = None) -> int:
    """Run the smoke test and/or the server as requested by ``args``.

    Args:
        args: Command line namespace with server, test, port, upstream, debug

    Returns:
        Process exit status

    Raises:
        ValueError: If no upstream URL is configured
    """
    import logging
    import os

    _init_logging(os.environ.get("FICALTER_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    from .calendar import IcsError
    from .fetcher import UpstreamFetchError
    from .logging_config import configure_logging

    cfg = _resolve_config(args)
    configure_logging(debug_mode=bool(cfg.get("debug_logging", False)))

    if not cfg.get("upstream_url"):
        raise ValueError("No upstream URL: pass --upstream or set FICALTER_UPSTREAM_URL")

    if getattr(args, "test", False):
        try:
            run_smoke_test(cfg)
        except (UpstreamFetchError, IcsError):
            logger.exception("Smoke test failed")
            return 1

    if getattr(args, "server", False):
        from .api.server import start_server

        logger.debug(
            "Resolved configuration (diagnostic): %s",
            {k: cfg.get(k) for k in ("upstream_url", "server_bind", "server_port", "fold_width")},
        )
        start_server(cfg)

    return 0
