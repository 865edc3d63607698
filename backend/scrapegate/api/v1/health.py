import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from scrapegate.config import settings
from scrapegate.core.metrics import get_metrics, get_metrics_content_type
from scrapegate.services.runtime import DeploymentContext
from scrapegate.services.scraper import ScrapePipeline, get_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/health",
    summary="Liveness check",
    description="Returns HTTP 200 while the process is running.",
)
async def liveness():
    """Liveness probe: returns 200 if the process is running."""
    return {"status": "healthy"}


@router.get(
    "/health/ready",
    summary="Readiness check",
    description="Resolves the browser launch configuration the next scrape would use and reports render and cache usage. Returns HTTP 503 if the configuration cannot be resolved.",
)
async def readiness(pipeline: ScrapePipeline = Depends(get_pipeline)):
    """Readiness probe: checks that a browser runtime can be resolved."""
    checks = {}

    try:
        config = pipeline.resolver.resolve(DeploymentContext.from_settings())
        checks["browser_runtime"] = "ok"
        checks["executable_path"] = config.executable_path or "bundled"
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        checks["browser_runtime"] = f"error: {e}"

    all_ok = checks["browser_runtime"] == "ok"
    return JSONResponse(
        content={
            "status": "ready" if all_ok else "not ready",
            "checks": checks,
            "active_sessions": pipeline.executor.active_sessions,
            "max_sessions": pipeline.executor.max_concurrent,
            "cached_responses": len(pipeline.cache),
        },
        status_code=200 if all_ok else 503,
    )


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Application metrics in Prometheus exposition format. Returns HTTP 404 when metrics are disabled.",
)
async def metrics():
    """Prometheus metrics endpoint."""
    if not settings.METRICS_ENABLED:
        return Response(content="Metrics disabled", status_code=404)

    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )
