"""
Request correlation for the incident API.

Every request gets a correlation id (taken from ``X-Correlation-ID`` when the
caller sends one) and a fresh event id. Both are bound to the logging context
for the duration of the request and echoed back as response headers, and one
summary line is logged per request.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from backend.app.core.logging import correlation_id_ctx, event_id_ctx

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
EVENT_HEADER = "X-Event-ID"


def _request_fields(request: Request, started: float) -> dict:
    fields = {
        "method": request.method,
        "path": request.url.path,
        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        "client_ip": request.client.host if request.client else None,
    }
    if request.url.query:
        fields["query"] = request.url.query
    return fields


class TracingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        event_id = str(uuid.uuid4())
        correlation_id_ctx.set(correlation_id)
        event_id_ctx.set(event_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} raised {type(e).__name__}",
                extra={"extra_data": {**_request_fields(request, started), "status_code": 500, "error": str(e)}},
                exc_info=True,
            )
            raise

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"extra_data": {**_request_fields(request, started), "status_code": response.status_code}},
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers[EVENT_HEADER] = event_id
        return response
