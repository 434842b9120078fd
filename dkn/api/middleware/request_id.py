"""
Request ID middleware.

Every request gets a correlation id: the client's X-Request-ID when it is
usable, otherwise a fresh UUID. The id is echoed in the response, stored on
request.state, and placed in a context var so log records and activity
events carry it.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from dkn.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Matches the width of event_logs.request_id
MAX_REQUEST_ID_LENGTH = 64
SLOW_REQUEST_MS = 1000


def _accepted_request_id(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH or not value.isprintable():
        return None
    return value


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign a correlation id to each request and log its completion."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _accepted_request_id(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            response.headers[REQUEST_ID_HEADER] = request_id

            details = {
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
            if duration_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra=details)
            else:
                logger.debug("Request handled", extra=details)

            return response
        finally:
            request_id_var.reset(token)
