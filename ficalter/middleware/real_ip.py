"""Remote address patching for deployments behind a reverse proxy."""

import logging
from collections.abc import Awaitable, Callable

from aiohttp import web

logger = logging.getLogger(__name__)

REAL_IP_HEADER = "X-Real-IP"


@web.middleware
async def real_ip_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Replace ``request.remote`` with the proxy-supplied ``X-Real-IP`` header."""
    real_ip = request.headers.get(REAL_IP_HEADER)
    if real_ip:
        logger.debug("Using %s %s instead of %s", REAL_IP_HEADER, real_ip, request.remote)
        request = request.clone(remote=real_ip)
    return await handler(request)
