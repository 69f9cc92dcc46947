"""
API Rate Limiter.

Config-driven throttling of /api/ requests, applied independently per
client IP and per bearer token. Limits come from security.yaml
rate_limiting. Uses in-memory sliding windows; upgrade to Redis
INCR + EXPIRE for distributed deployments.
"""

import time
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notevault.backend.core.config import get_app_config
from notevault.backend.core.exceptions import RateLimitError
from notevault.backend.core.logging import get_logger
from notevault.backend.core.security import extract_bearer_token
from notevault.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

_SWEEP_INTERVAL_SECONDS = 60.0


class RateLimitResult:
    """Result of a rate limit check."""

    def __init__(self, allowed: bool, retry_after_seconds: int = 0) -> None:
        self.allowed = allowed
        self.retry_after_seconds = retry_after_seconds


class ApiRateLimiter:
    """
    Sliding-window limiter keyed by scope ("ip" or "token") and identity.

    Each scope has its own limit and period, and a request must pass every
    scope it is checked against. Identities idle past their window are
    evicted at most once per sweep interval.
    """

    def __init__(self) -> None:
        self._requests: dict[str, list[float]] = {}
        self._expires_at: dict[str, float] = {}
        self._next_sweep = 0.0

    def check(self, scope: str, identity: str, limit: int, period_seconds: int) -> RateLimitResult:
        """
        Record a request for (scope, identity) if it is within limits.

        Args:
            scope: Throttle name ("ip" or "token")
            identity: Client IP or bearer token
            limit: Maximum requests within the period
            period_seconds: Window length

        Returns:
            RateLimitResult indicating whether the request is allowed
        """
        now = time.monotonic()
        if now >= self._next_sweep:
            self._evict_idle(now)

        key = f"{scope}:{identity}"
        cutoff = now - period_seconds
        window = [ts for ts in self._requests.get(key, ()) if ts > cutoff]
        self._requests[key] = window

        if len(window) >= limit:
            oldest = min(window)
            retry_after = int(period_seconds - (now - oldest)) + 1
            logger.warning(
                "Rate limit exceeded",
                extra={"scope": scope, "limit": limit, "period_seconds": period_seconds},
            )
            return RateLimitResult(allowed=False, retry_after_seconds=retry_after)

        window.append(now)
        self._expires_at[key] = now + period_seconds
        return RateLimitResult(allowed=True)

    def _evict_idle(self, now: float) -> None:
        idle = [key for key, expires_at in self._expires_at.items() if expires_at <= now]
        for key in idle:
            del self._expires_at[key]
            self._requests.pop(key, None)
        self._next_sweep = now + _SWEEP_INTERVAL_SECONDS

    def tracked_identities(self) -> int:
        return len(self._requests)

    def reset(self) -> None:
        """Forget all recorded requests."""
        self._requests.clear()
        self._expires_at.clear()
        self._next_sweep = 0.0


_rate_limiter: ApiRateLimiter | None = None


def get_rate_limiter() -> ApiRateLimiter:
    """Get or create the API rate limiter singleton."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = ApiRateLimiter()
    return _rate_limiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Throttle API requests by client IP and by bearer token.

    Requests outside the configured path prefix pass through untouched.
    A throttled request gets 429 with the standard error envelope and a
    Retry-After header.
    """

    def __init__(self, app, limiter: ApiRateLimiter | None = None) -> None:
        super().__init__(app)
        self._limiter = limiter or get_rate_limiter()

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        settings = get_app_config().security.rate_limiting
        if not request.url.path.startswith(settings.path_prefix):
            return await call_next(request)

        checks: list[tuple[str, str, int, int]] = []
        client_ip = request.client.host if request.client else "unknown"
        checks.append(("ip", client_ip, settings.per_ip.limit, settings.per_ip.period_seconds))

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token:
            checks.append(
                ("token", token, settings.per_token.limit, settings.per_token.period_seconds)
            )

        for scope, identity, limit, period in checks:
            result = self._limiter.check(scope, identity, limit, period)
            if not result.allowed:
                return _throttled_response(request, result.retry_after_seconds)

        return await call_next(request)


def _throttled_response(request: Request, retry_after: int) -> JSONResponse:
    """Build the fixed 429 response."""
    exc = RateLimitError()
    request_id = getattr(request.state, "request_id", None)
    response = ErrorResponse(
        error=ErrorDetail(code=exc.code, message=exc.message),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return JSONResponse(
        status_code=429,
        content=response.model_dump(mode="json"),
        headers={"Retry-After": str(retry_after)},
    )
