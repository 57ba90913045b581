"""Health check routes."""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import BaseModel

from port_monitor.monitor.service import get_monitor
from port_monitor.scheduler.job_scheduler import get_scheduler
from port_monitor.version import __version__, get_version_info

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    scheduler_running: bool
    monitor_ready: bool
    version: str
    message: str = "OK"


class VersionResponse(BaseModel):
    version: str
    build_date: Optional[str] = None
    git_commit: Optional[str] = None


def _scheduler_running() -> bool:
    scheduler = get_scheduler()
    return scheduler is not None and scheduler.running


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for Docker/monitoring."""
    scheduler_running = _scheduler_running()
    monitor_ready = get_monitor() is not None
    healthy = scheduler_running and monitor_ready

    if healthy:
        message = "OK"
    elif not scheduler_running:
        message = "Scheduler not running"
    else:
        message = "Monitor not initialised"

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        scheduler_running=scheduler_running,
        monitor_ready=monitor_ready,
        version=__version__,
        message=message,
    )


@router.get("/version", response_model=VersionResponse)
async def version():
    """Get application version information."""
    info = get_version_info()
    return VersionResponse(**info)


@router.get("/ready")
async def readiness_check():
    """Readiness check for Kubernetes/orchestration."""
    if _scheduler_running():
        return {"ready": True}

    return {"ready": False, "reason": "Scheduler not running"}


@router.get("/live")
async def liveness_check():
    """Liveness check - always returns OK if app is running."""
    return {"alive": True}


@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics endpoint.

    Returns metrics in Prometheus exposition format for scraping.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
