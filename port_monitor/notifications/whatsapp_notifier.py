"""Instant message notifications through the WhatsApp Cloud API."""

import logging
from datetime import datetime, timezone

import httpx

from port_monitor.config import settings, to_local_iso

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.facebook.com"


def format_alert_message(brand: str, host: str, port) -> str:
    """Build the plain-text alert body."""
    return (
        "PORT CLOSED ALERT\n\n"
        f"Brand: {brand}\n"
        f"Host: {host}\n"
        f"Port: {port}\n"
        f"Time: {to_local_iso(datetime.now(timezone.utc))}\n\n"
        "Please check the connection immediately."
    )


def _build_payload(destination_number: str, body: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "to": destination_number,
        "type": "text",
        "text": {"body": body},
    }


async def send_whatsapp_alert(destination_number: str, brand: str, host: str, port) -> bool:
    """Send a port closed alert as a WhatsApp text message.

    Without credentials the message is only logged and the call still
    reports success, so missing configuration never blocks monitoring.

    Args:
        destination_number: Recipient phone number in international format.
        brand: Brand whose endpoint is closed.
        host: Closed host/IP.
        port: Closed port.

    Returns:
        True if the message was sent (or logged), False on API failure.
    """
    message = format_alert_message(brand, host, port)
    logger.info("Sending WhatsApp alert for %s - %s:%s to %s", brand, host, port, destination_number)

    if not settings.whatsapp_configured:
        logger.warning("WhatsApp credentials not configured. Message would be:\n%s", message)
        return True

    url = (
        f"{GRAPH_API_URL}/{settings.whatsapp_api_version}/"
        f"{settings.whatsapp_phone_number_id}/messages"
    )

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                url,
                json=_build_payload(destination_number, message),
                headers={"Authorization": f"Bearer {settings.whatsapp_access_token}"},
                timeout=10.0,
            )
            response.raise_for_status()

        logger.info("WhatsApp message sent to %s", destination_number)
        return True

    except httpx.HTTPStatusError as e:
        logger.error("WhatsApp API error: %s - %s", e.response.status_code, e.response.text[:200])
        return False

    except Exception as e:
        logger.error("Failed to send WhatsApp message: %s", e)
        return False
