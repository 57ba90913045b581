"""REST API routes."""

import asyncio
import json
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from port_monitor.config import settings
from port_monitor.monitor.prober import InvalidInputError, check_port
from port_monitor.monitor.service import MonitorService, get_monitor
from port_monitor.notifications.email_notifier import send_escalation_email
from port_monitor.notifications.whatsapp_notifier import send_whatsapp_alert
from port_monitor.scheduler.job_scheduler import get_jobs_info, trigger_manual_cycle

router = APIRouter()


# Request/response models
class CheckRequest(BaseModel):
    brand: Optional[str] = None
    port: Optional[int] = None
    timeout: float = 3
    ip: Optional[str] = None


class CheckResponse(BaseModel):
    open: bool
    host: str
    port: int
    time_ms: int
    message: str
    brand: str


class EndpointResponse(BaseModel):
    brand: str
    role: str
    role_label: str
    host: Optional[str] = None
    port: int
    status: str
    closed_since: Optional[str] = None
    closed_since_ms: Optional[int] = None
    escalation_sent: bool = False
    alarm_active: bool = False
    last_checked: Optional[str] = None
    last_change: Optional[str] = None
    time_ms: Optional[int] = None
    message: Optional[str] = None


class StatusResponse(BaseModel):
    cycle_count: int
    cycle_running: bool
    active_alarms: int
    endpoints: List[EndpointResponse] = []


class EmailAlertRequest(BaseModel):
    brand: str
    ip: str
    role_label: str
    closed_since: str


class WhatsAppAlertRequest(BaseModel):
    destination_number: str
    brand: str
    host: str
    port: Union[int, str]


class AlertResponse(BaseModel):
    success: bool


class JobResponse(BaseModel):
    id: str
    name: str
    next_run: Optional[str] = None
    trigger: str


class TriggerResponse(BaseModel):
    message: str
    status: str = "queued"


def _require_monitor() -> MonitorService:
    monitor = get_monitor()
    if monitor is None:
        raise HTTPException(status_code=503, detail="Monitor not initialised")
    return monitor


@router.post("/check", response_model=CheckResponse)
async def check(request: CheckRequest):
    """Probe a brand host or IP once without touching monitoring state."""
    monitor = _require_monitor()

    try:
        return await check_port(
            monitor.registry,
            brand=request.brand,
            ip=request.ip,
            port=request.port,
            timeout_seconds=request.timeout,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/status", response_model=StatusResponse)
async def get_status():
    """Get the current state of every monitored endpoint."""
    monitor = _require_monitor()

    return StatusResponse(
        cycle_count=monitor.cycle_count,
        cycle_running=monitor.cycle_running,
        active_alarms=monitor.alarms.active_count,
        endpoints=monitor.snapshot(),
    )


@router.get("/endpoints/{brand}", response_model=List[EndpointResponse])
async def get_brand_endpoints(brand: str):
    """Get the state of both endpoints of a brand."""
    monitor = _require_monitor()

    endpoints = monitor.registry.endpoints_for(brand)
    if not endpoints:
        raise HTTPException(status_code=404, detail="Brand not found")

    return [monitor.tracker.get(e.id).to_dict() for e in endpoints]


@router.get("/notices")
async def list_notices(limit: int = Query(10, ge=1, le=50)):
    """Get the most recent closed/recovered notices."""
    monitor = _require_monitor()
    return monitor.events.recent_notices(limit)


@router.get("/events")
async def stream_events(request: Request):
    """Stream alarm, notice and snapshot events via Server-Sent Events."""
    monitor = _require_monitor()
    queue = monitor.events.subscribe()

    async def event_generator():
        try:
            # Initial snapshot so the client can render right away
            yield {
                "event": "snapshot",
                "data": json.dumps({"type": "snapshot", "endpoints": monitor.snapshot()}),
            }
            while True:
                if await request.is_disconnected():
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=15)
                except asyncio.TimeoutError:
                    continue
                yield {
                    "event": event["type"],
                    "data": json.dumps(event),
                }
        finally:
            monitor.events.unsubscribe(queue)

    return EventSourceResponse(event_generator())


@router.post("/cycle/trigger", response_model=TriggerResponse)
async def trigger_cycle():
    """Manually trigger a monitoring cycle."""
    _require_monitor()
    message = await trigger_manual_cycle()

    return TriggerResponse(
        message=message,
        status="queued" if message.endswith("triggered") else "done",
    )


@router.get("/jobs", response_model=List[JobResponse])
async def list_jobs():
    """Get scheduled jobs information."""
    return get_jobs_info()


@router.get("/config")
async def get_config():
    """Get current configuration (non-sensitive)."""
    return {
        "check_interval_seconds": settings.check_interval_seconds,
        "probe_timeout_seconds": settings.probe_timeout_seconds,
        "escalation_threshold_seconds": settings.escalation_threshold_seconds,
        "alarm_interval_seconds": settings.alarm_interval_seconds,
        "smtp_configured": settings.smtp_configured,
        "whatsapp_configured": settings.whatsapp_configured,
        "whatsapp_destination_configured": bool(settings.whatsapp_destination_number),
    }


@router.post("/alerts/email", response_model=AlertResponse)
async def email_alert(request: EmailAlertRequest):
    """Send a port closed email to the alert recipients."""
    ok = await send_escalation_email(
        brand=request.brand,
        ip=request.ip,
        role_label=request.role_label,
        closed_since=request.closed_since,
    )
    return AlertResponse(success=ok)


@router.post("/alerts/whatsapp", response_model=AlertResponse)
async def whatsapp_alert(request: WhatsAppAlertRequest):
    """Send a port closed WhatsApp message."""
    ok = await send_whatsapp_alert(
        destination_number=request.destination_number,
        brand=request.brand,
        host=request.host,
        port=request.port,
    )
    return AlertResponse(success=ok)
