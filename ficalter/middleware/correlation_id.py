"""Request correlation ID middleware.

Every request gets an ID, taken from the client or generated, that is stored
in a context variable so log records emitted while serving the request can be
tied together.
"""

import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from aiohttp import web

# Uses contextvars for async-safe propagation within one request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

CORRELATION_ID_KEY = web.RequestKey("correlation_id", str)
REQUEST_ID_HEADER = "X-Request-ID"

NO_REQUEST_ID = "no-request-id"


@web.middleware
async def correlation_id_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Extract or generate a correlation ID for request tracking.

    Priority:
    1. X-Request-ID from client
    2. X-Correlation-ID from client
    3. Generate new UUID

    The ID is added to the request, to the context variable and to the
    response headers, including error responses raised as HTTP exceptions.
    """
    correlation_id = (
        request.headers.get(REQUEST_ID_HEADER)
        or request.headers.get("X-Correlation-ID")
        or str(uuid.uuid4())
    )

    token = request_id_var.set(correlation_id)
    request[CORRELATION_ID_KEY] = correlation_id
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers[REQUEST_ID_HEADER] = correlation_id
        raise
    finally:
        request_id_var.reset(token)

    response.headers[REQUEST_ID_HEADER] = correlation_id
    return response


def get_request_id() -> str:
    """Get current request correlation ID from context.

    Returns:
        Current request correlation ID, or "no-request-id" if not set
    """
    request_id = request_id_var.get()
    return request_id if request_id else NO_REQUEST_ID
