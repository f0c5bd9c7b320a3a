"""Access log plus request correlation.

Each request gets an id on ``request.state.request_id``; routers and the
exception handlers copy it into the envelope and it is echoed in the
``X-Request-ID`` response header. A caller-supplied ``X-Request-ID`` is
reused so a trade can be followed across services. 5xx responses log at
WARNING.

    INFO [POST] /api/v1/trades → 200 (23ms) req_a1b2c3d4e5f6
"""

import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.lp_common.response import new_request_id

logger = logging.getLogger("lp.request")

_INCOMING_ID = re.compile(r"^[A-Za-z0-9_.:-]{1,64}$")


def _request_id(request: Request) -> str:
    incoming = request.headers.get("X-Request-ID")
    if incoming and _INCOMING_ID.match(incoming):
        return incoming
    return new_request_id()


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.state.request_id = _request_id(request)

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
