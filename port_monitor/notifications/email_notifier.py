"""Email notifications via SMTP."""

import html
import logging
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from port_monitor.config import settings, to_local_iso
from port_monitor.monitor.registry import DEFAULT_PORT

logger = logging.getLogger(__name__)


def _build_escalation_html(
    brand: str,
    ip: str,
    role_label: str,
    closed_since: str,
    port: int,
    threshold_minutes: int,
) -> str:
    """Build HTML body of the port closed alert."""
    alert_time = to_local_iso(datetime.now(timezone.utc))

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
    </head>
    <body style='font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;'>
        <div style='background-color: #dc2626; color: white; padding: 20px; border-radius: 5px 5px 0 0;'>
            <h1 style='margin: 0;'>Port Closed Alert</h1>
        </div>

        <div style='background-color: #fef2f2; padding: 20px; border: 1px solid #fecaca;'>
            <p style='margin: 0 0 10px 0;'><strong>Brand:</strong> {html.escape(brand)}</p>
            <p style='margin: 0 0 10px 0;'><strong>IP Type:</strong> {html.escape(role_label)}</p>
            <p style='margin: 0 0 10px 0;'><strong>IP Address:</strong> {html.escape(ip)}</p>
            <p style='margin: 0 0 10px 0;'><strong>Port:</strong> {port}</p>
            <p style='margin: 0 0 10px 0;'><strong>Closed Since:</strong> {html.escape(closed_since)}</p>
            <p style='margin: 0;'><strong>Alert Time:</strong> {alert_time}</p>

            <p style='color: #991b1b; font-weight: bold;'>
                This port has been closed for more than {threshold_minutes} minutes.
                Please check the connection immediately.
            </p>
        </div>

        <div style='background-color: #ecf0f1; padding: 10px; text-align: center; border-radius: 0 0 5px 5px;'>
            <p style='margin: 0; color: #7f8c8d; font-size: 12px;'>
                Port Status Monitor
            </p>
        </div>
    </body>
    </html>
    """


async def send_escalation_email(
    brand: str,
    ip: str,
    role_label: str,
    closed_since: str,
    port: int = DEFAULT_PORT,
) -> bool:
    """Send the outage escalation email to the alert recipients.

    Args:
        brand: Brand whose endpoint is closed.
        ip: Host/IP of the closed endpoint.
        role_label: Human readable role, e.g. 'Live IP'.
        closed_since: Timestamp the outage began.
        port: Monitored port.

    Returns:
        True if email sent successfully, False otherwise.
    """
    if not settings.smtp_configured:
        logger.debug("SMTP not configured, skipping email notification")
        return False

    recipients = settings.alert_recipients_list
    subject = f"PORT CLOSED: {brand} - {role_label}"
    threshold_minutes = max(1, settings.escalation_threshold_seconds // 60)

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = settings.smtp_from
    message["To"] = ", ".join(recipients)
    message.attach(MIMEText(
        _build_escalation_html(brand, ip, role_label, closed_since, port, threshold_minutes),
        "html",
    ))

    logger.info("Sending email alert for %s - %s: %s", brand, role_label, ip)

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            start_tls=True,
        )
        logger.info("Email sent to %s", ", ".join(recipients))
        return True

    except Exception as e:
        logger.error("Failed to send email: %s", e)
        return False
