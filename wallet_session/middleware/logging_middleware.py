"""
HTTP request logging middleware.

One structured line per request. Wallet routes also record the session status
the request left behind, so a log reader can follow connect / switch / send
without querying the API.
"""

import time
import uuid
from typing import Any, Dict, Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("wallet_session.http")

REQUEST_ID_HEADER = "x-request-id"
QUIET_PATHS = frozenset({"/healthz"})


def _session_status(request: Request) -> Optional[str]:
    manager = getattr(request.app.state, "wallet_session", None)
    if manager is None:
        return None
    return manager.status.value


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing, status code and resulting session status."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        path = request.url.path
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            fields: Dict[str, Any] = {
                "method": request.method,
                "path": path,
                "status": status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            }
            if path.startswith("/wallet"):
                fields["session"] = _session_status(request)

            if status_code >= 500:
                logger.error("http_request", **fields)
            elif status_code >= 400:
                logger.warning("http_request", **fields)
            elif path in QUIET_PATHS:
                logger.debug("http_request", **fields)
            else:
                logger.info("http_request", **fields)
