"""FastAPI web application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from port_monitor.monitor.service import create_monitor, get_monitor, set_monitor
from port_monitor.scheduler.job_scheduler import start_scheduler, shutdown_scheduler
from port_monitor.version import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Starting Port Monitor...")

    monitor = create_monitor()
    set_monitor(monitor)
    logger.info("Monitoring %d endpoints", len(monitor.registry))

    start_scheduler()
    logger.info("Scheduler started")

    yield

    # Shutdown
    logger.info("Shutting down Port Monitor...")
    shutdown_scheduler()
    monitor = get_monitor()
    if monitor is not None:
        await monitor.shutdown()
    set_monitor(None)
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Port Monitor",
    description="TCP liveness monitor with alarm and escalation alerts",
    version=__version__,
    lifespan=lifespan,
)

# Import and include routers
from port_monitor.web.routes import api, health  # noqa: E402

app.include_router(api.router, prefix="/api", tags=["API"])
app.include_router(health.router, tags=["Health"])
