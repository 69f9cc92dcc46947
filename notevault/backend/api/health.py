"""
Health Check Endpoints.

Provides liveness, readiness, and detailed health checks.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (database reachable)
- /health/detailed: Component-by-component status (for debugging)

Redis only carries background tasks, so it is reported but never fails
readiness.
"""

import asyncio
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from notevault.backend.core.config import get_app_config, get_redis_url
from notevault.backend.core.database import get_session_factory
from notevault.backend.core.logging import get_logger
from notevault.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database() -> dict[str, Any]:
    """
    Check database connectivity.

    Returns:
        Dict with status, latency, and optional error message
    """
    start = utc_now()
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}

    latency_ms = int((utc_now() - start).total_seconds() * 1000)
    return {"status": "healthy", "latency_ms": latency_ms}


async def check_redis() -> dict[str, Any]:
    """
    Check Redis connectivity.

    Returns:
        Dict with status, latency, and optional error message
    """
    import redis.asyncio as redis
    from redis.exceptions import RedisError

    if not get_app_config().database.redis.host:
        return {"status": "not_configured"}

    start = utc_now()
    client = redis.from_url(get_redis_url())
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("Redis health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}
    finally:
        await client.aclose()

    latency_ms = int((utc_now() - start).total_seconds() * 1000)
    return {"status": "healthy", "latency_ms": latency_ms}


async def _run_checks(timeout: float) -> dict[str, dict[str, Any]]:
    db_result: dict[str, Any] = {"status": "error", "error": "check did not run"}
    redis_result: dict[str, Any] = {"status": "error", "error": "check did not run"}

    try:
        async with asyncio.timeout(timeout):
            async with asyncio.TaskGroup() as tg:
                db_task = tg.create_task(check_database())
                redis_task = tg.create_task(check_redis())
            db_result = db_task.result()
            redis_result = redis_task.result()
    except* TimeoutError:
        logger.warning("Health checks timed out", extra={"timeout_seconds": timeout})
    except* Exception as eg:
        for exc in eg.exceptions:
            logger.warning("Health check task failed", extra={"error": str(exc)})

    return {"database": db_result, "redis": redis_result}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running.
    No dependency checks - this endpoint should always respond quickly.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    Returns 503 unless the database answers within the configured timeout.
    """
    timeout = get_app_config().application.timeouts.health_check
    checks = await _run_checks(timeout)

    if checks["database"].get("status") != "healthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health_check() -> dict[str, Any]:
    """
    Detailed health check.

    Returns dependency checks, application identity and pool metrics.
    """
    app_config = get_app_config()
    checks = await _run_checks(app_config.application.timeouts.health_check)

    app_settings = app_config.application
    app_info = {
        "name": app_settings.name,
        "env": app_settings.environment,
        "debug": app_settings.debug,
        "version": app_settings.version,
    }

    return {
        "status": "healthy" if checks["database"].get("status") == "healthy" else "unhealthy",
        "application": app_info,
        "checks": checks,
        "pools": _get_pool_status(),
        "timestamp": utc_now().isoformat(),
    }


def _get_pool_status() -> dict[str, Any]:
    """Collect current thread pool metrics for health reporting."""
    from notevault.backend.core import concurrency

    pools: dict[str, Any] = {}
    if concurrency._io_pool is not None:
        pools["thread_pool"] = {"max_workers": concurrency._io_pool._max_workers}
    return pools
