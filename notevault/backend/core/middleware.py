"""
Request Context Middleware.

Middleware for request tracking, timing, client identification, and context propagation.
"""

import uuid
from datetime import datetime, timezone

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notevault.backend.core.logging import get_logger

logger = get_logger(__name__)

# Client identifiers accepted in X-Client-ID
KNOWN_CLIENTS = {"web", "cli", "mobile", "api", "internal"}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds request context to every request.

    Features:
    - Generates or propagates request ID (X-Request-ID header)
    - Extracts client identifier (X-Client-ID header)
    - Records request timing (X-Response-Time header)
    - Binds request context to structlog for automatic inclusion in logs

    Access in endpoints:
        request.state.request_id
        request.state.client
        request.state.start_time
    """

    def __init__(self, app, log_requests: bool = True) -> None:
        super().__init__(app)
        self._log_requests = log_requests

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request with context tracking."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        client = request.headers.get("X-Client-ID", "unknown").lower()
        if client not in KNOWN_CLIENTS:
            client = "unknown"

        start_time = datetime.now(timezone.utc).replace(tzinfo=None)

        request.state.request_id = request_id
        request.state.client = client
        request.state.start_time = start_time

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            client=client,
            source="api",
            method=request.method,
            path=request.url.path,
        )

        if self._log_requests:
            logger.debug(
                "Request started",
                extra={
                    "client_host": request.client.host if request.client else None,
                    "user_agent": request.headers.get("User-Agent"),
                },
            )

        try:
            response = await call_next(request)

            end_time = datetime.now(timezone.utc).replace(tzinfo=None)
            duration_ms = int((end_time - start_time).total_seconds() * 1000)

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"

            if self._log_requests:
                logger.info(
                    "Request completed",
                    extra={
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    },
                )

            return response

        except Exception as exc:
            end_time = datetime.now(timezone.utc).replace(tzinfo=None)
            duration_ms = int((end_time - start_time).total_seconds() * 1000)

            logger.error(
                "Request failed with exception",
                extra={
                    "duration_ms": duration_ms,
                    "error_type": type(exc).__name__,
                },
            )
            raise

        finally:
            # Prevent context leaking into the next request on this worker
            structlog.contextvars.clear_contextvars()
