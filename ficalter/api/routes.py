"""HTTP routes for the ficalter server."""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web
from multidict import MultiMapping

from ..calendar import DEFAULT_FOLD_WIDTH, DEFAULT_SELECTOR, IcsError, SummaryFilter
from ..config_manager import get_config_value
from ..fetcher import UpstreamFetcher, UpstreamFetchError
from ..pipeline import fetch_and_process

logger = logging.getLogger(__name__)

ICS_CONTENT_TYPE = "text/calendar"
ICS_CHARSET = "utf-8"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "Thu, 01 Jan 1970 00:00:00 GMT",
}

# Keys under which shared objects are stored on the aiohttp application
CONFIG_KEY = web.AppKey("config", dict)
FETCHER_KEY = web.AppKey("fetcher", UpstreamFetcher)


def _query_flag(params: MultiMapping[str], name: str, default: bool) -> bool:
    """Read a boolean query parameter; only a case-insensitive 'true' is true."""
    raw = params.get(name)
    if raw is None:
        return default
    return raw.upper() == "TRUE"


def policy_from_query(params: MultiMapping[str]) -> SummaryFilter:
    """Build the filter policy for one request from its query parameters."""
    return SummaryFilter(
        includes=tuple(params.getall("include", ())),
        excludes=tuple(params.getall("exclude", ())),
        default_keep=_query_flag(params, "default", True),
        case_insensitive=_query_flag(params, "insensitive", True),
    )


async def calendar_handler(request: web.Request) -> web.StreamResponse:
    """Serve the upstream calendar filtered by the request's query parameters."""
    config: dict[str, Any] = request.app[CONFIG_KEY]
    fetcher = request.app[FETCHER_KEY]
    policy = policy_from_query(request.query)

    logger.info(
        "Calendar request from %s: include=%s exclude=%s default=%s insensitive=%s",
        request.remote,
        list(policy.includes),
        list(policy.excludes),
        policy.default_keep,
        policy.case_insensitive,
    )

    try:
        body = await fetch_and_process(
            config["upstream_url"],
            policy,
            fetcher=fetcher,
            selector=get_config_value(config, "selector", DEFAULT_SELECTOR),
            width=int(get_config_value(config, "fold_width", DEFAULT_FOLD_WIDTH)),
        )
    except UpstreamFetchError as e:
        logger.error("Upstream fetch failed: %s", e)
        raise web.HTTPBadGateway(text="upstream calendar unavailable") from e
    except IcsError as e:
        logger.error("Upstream calendar is malformed: %s", e)
        raise web.HTTPBadGateway(text="upstream calendar is malformed") from e

    response = web.Response(
        body=body,
        content_type=ICS_CONTENT_TYPE,
        charset=ICS_CHARSET,
        headers=NO_CACHE_HEADERS,
    )
    response.enable_compression()
    return response


async def health_check(request: web.Request) -> web.Response:
    """Liveness endpoint; does not contact the upstream."""
    config: dict[str, Any] = request.app[CONFIG_KEY]
    return web.json_response(
        {"status": "ok", "upstream_configured": bool(config.get("upstream_url"))}
    )


def register_routes(app: web.Application) -> None:
    """Register the calendar and health routes on ``app``."""
    app.router.add_get("/", calendar_handler)
    app.router.add_get("/healthz", health_check)
