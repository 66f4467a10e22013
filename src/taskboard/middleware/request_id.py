"""Request ID and access logging.

Learn: Every request gets an id, taken from an incoming X-Request-ID
header or generated. It is bound to structlog's contextvars together with
the method and path, so "task.created" or "tasks.reconciled" lines can be
tied back to the HTTP call that caused them. One "request.completed" line
per request records the status and how long it took.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag the request with an id, log its outcome, echo the id back."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response: Response = await call_next(request)
        logger.info(
            "request.completed",
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
