"""Main notification orchestrator."""

import logging
from typing import List, Tuple

from port_monitor.config import epoch_ms_to_local_iso, settings
from port_monitor.metrics import notifications_failed_total, notifications_sent_total
from port_monitor.monitor.registry import Endpoint
from port_monitor.notifications.email_notifier import send_escalation_email
from port_monitor.notifications.whatsapp_notifier import send_whatsapp_alert

logger = logging.getLogger(__name__)


async def send_escalation_notification(endpoint: Endpoint, closed_since_ms: int) -> bool:
    """Escalate a persistent outage through all configured channels.

    Args:
        endpoint: The endpoint that has stayed closed past the threshold.
        closed_since_ms: Epoch milliseconds the outage began.

    Returns:
        True if at least one channel delivered the alert.
    """
    closed_since = epoch_ms_to_local_iso(closed_since_ms)
    results: List[Tuple[str, bool]] = []

    email_result = await send_escalation_email(
        brand=endpoint.brand,
        ip=endpoint.host,
        role_label=endpoint.role.label,
        closed_since=closed_since,
        port=endpoint.port,
    )
    results.append(("email", email_result))

    if settings.whatsapp_destination_number:
        whatsapp_result = await send_whatsapp_alert(
            destination_number=settings.whatsapp_destination_number,
            brand=endpoint.brand,
            host=endpoint.host,
            port=endpoint.port,
        )
        results.append(("whatsapp", whatsapp_result))
    else:
        logger.debug("No WhatsApp destination configured, skipping instant message")

    sent = [name for name, success in results if success]
    failed = [name for name, success in results if not success]

    for name, success in results:
        if success:
            notifications_sent_total.labels(channel=name, type="escalation").inc()
        else:
            notifications_failed_total.labels(channel=name, type="escalation").inc()

    if sent:
        logger.info(
            "Escalation for %s %s sent via: %s",
            endpoint.brand,
            endpoint.role.label,
            ", ".join(sent),
        )
    if failed:
        logger.warning(
            "Escalation for %s %s failed/skipped: %s",
            endpoint.brand,
            endpoint.role.label,
            ", ".join(failed),
        )

    return bool(sent)
