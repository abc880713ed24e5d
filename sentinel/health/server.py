"""FastAPI health server for production monitoring.

Provides HTTP endpoints for:
- /health - Checkpoint store, database and disk checks
- /live - Liveness check
- /metrics - Prometheus metrics in text format
- /status - Today's checkpoint summary

Usage:
    from sentinel.health.server import run_health_server
    run_health_server(host="0.0.0.0", port=8000)
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
import structlog

from sentinel.health.checks import HealthChecker, HealthStatus
from sentinel.observability.metrics import get_metrics_text, get_metrics_content_type
from sentinel.utils.exceptions import CheckpointStoreError

logger = structlog.get_logger()

# Global health checker instance
_health_checker: Optional[HealthChecker] = None


def get_health_checker() -> HealthChecker:
    """Get or create the global health checker instance."""
    global _health_checker
    if _health_checker is None:
        _health_checker = HealthChecker()
    return _health_checker


def set_health_checker(checker: HealthChecker) -> None:
    """Set the global health checker instance."""
    global _health_checker
    _health_checker = checker


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    logger.info("health_server_starting")
    get_health_checker()
    yield
    logger.info("health_server_stopping")


def create_health_app(
    title: str = "arxiv-sentinel Health API",
    version: str = "1.0.0",
) -> FastAPI:
    """Create FastAPI application with health endpoints.

    Args:
        title: API title
        version: API version

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        version=version,
        description="Health check and metrics endpoints for the daily automation",
        lifespan=lifespan,
    )

    @app.get(
        "/health",
        response_model=None,
        summary="Full health check",
        responses={
            200: {"description": "Healthy or degraded"},
            503: {"description": "One or more checks failed"},
        },
    )
    async def health_check() -> Response:
        report = await get_health_checker().check_all()

        status_code = (
            status.HTTP_200_OK
            if report.status != HealthStatus.UNHEALTHY
            else status.HTTP_503_SERVICE_UNAVAILABLE
        )
        return JSONResponse(content=report.to_dict(), status_code=status_code)

    @app.get("/live", response_model=None, summary="Liveness check")
    async def liveness_check() -> Response:
        is_alive = await get_health_checker().is_alive()
        return JSONResponse(
            content={"alive": is_alive, "message": "Service is alive"},
            status_code=status.HTTP_200_OK,
        )

    @app.get(
        "/metrics",
        response_class=PlainTextResponse,
        summary="Prometheus metrics",
    )
    async def prometheus_metrics() -> Response:
        return Response(
            content=get_metrics_text(),
            media_type=get_metrics_content_type(),
        )

    @app.get("/status", response_model=None, summary="Today's automation progress")
    async def automation_status() -> Response:
        try:
            summary = get_health_checker().today_status()
        except CheckpointStoreError as e:
            return JSONResponse(
                content={"error": str(e)},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return JSONResponse(content=summary, status_code=status.HTTP_200_OK)

    @app.get("/", response_model=None, summary="Root endpoint")
    async def root() -> Dict[str, Any]:
        return {
            "name": title,
            "version": version,
            "endpoints": {
                "health": "/health",
                "live": "/live",
                "metrics": "/metrics",
                "status": "/status",
            },
        }

    return app


def run_health_server(  # pragma: no cover
    host: str = "0.0.0.0",
    port: int = 8000,
    log_level: str = "info",
) -> None:
    """Run health server (blocking)."""
    import uvicorn

    app = create_health_app()
    logger.info("health_server_starting", host=host, port=port)
    uvicorn.run(app, host=host, port=port, log_level=log_level)


async def run_health_server_async(  # pragma: no cover
    host: str = "0.0.0.0",
    port: int = 8000,
    log_level: str = "info",
) -> None:
    """Run health server inside an existing event loop."""
    import uvicorn

    config = uvicorn.Config(
        create_health_app(),
        host=host,
        port=port,
        log_level=log_level,
        access_log=True,
    )
    server = uvicorn.Server(config)

    logger.info("health_server_starting", host=host, port=port)
    await server.serve()
