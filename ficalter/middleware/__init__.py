"""aiohttp middlewares for the ficalter server."""

from .correlation_id import (
    CORRELATION_ID_KEY,
    correlation_id_middleware,
    get_request_id,
    request_id_var,
)
from .real_ip import real_ip_middleware

__all__ = [
    "CORRELATION_ID_KEY",
    "correlation_id_middleware",
    "get_request_id",
    "real_ip_middleware",
    "request_id_var",
]
