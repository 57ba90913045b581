"""Application configuration from environment variables."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Monitoring cadence
    check_interval_seconds: int = 30
    probe_timeout_seconds: float = 3.0
    escalation_threshold_seconds: int = 120  # Dwell time before escalation
    alarm_interval_seconds: float = 2.5      # Repeat cadence of the local alarm

    @field_validator(
        'check_interval_seconds',
        'escalation_threshold_seconds',
        'alarm_interval_seconds',
    )
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError('must be greater than zero')
        return v

    # Target roster (JSON mapping brand -> {host, port, primary_ip, secondary_ip})
    targets_file: Optional[Path] = None

    # Data storage (logs only, monitoring state is in-memory)
    data_dir: Path = Path("/app/data")

    # SMTP settings
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[str] = None
    alert_recipients: Optional[str] = None  # Comma-separated

    # WhatsApp Cloud API
    whatsapp_access_token: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    whatsapp_destination_number: Optional[str] = None
    whatsapp_api_version: str = "v18.0"

    # Web server
    web_host: str = "0.0.0.0"
    web_port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            raise ValueError('log_format must be "text" or "json"')
        return v

    # Timezone for display (reads from TZ env var, defaults to UTC)
    display_timezone: str = os.getenv("TZ", "UTC")

    @property
    def tz(self) -> ZoneInfo:
        """Get timezone object for configured display timezone."""
        try:
            return ZoneInfo(self.display_timezone)
        except Exception:
            return ZoneInfo("UTC")

    @property
    def probe_timeout_ms(self) -> int:
        return int(self.probe_timeout_seconds * 1000)

    @property
    def escalation_threshold_ms(self) -> int:
        return self.escalation_threshold_seconds * 1000

    @property
    def alert_recipients_list(self) -> List[str]:
        """Parse alert recipients into a list of addresses."""
        if not self.alert_recipients:
            return []
        return [r.strip() for r in self.alert_recipients.split(",") if r.strip()]

    @property
    def smtp_configured(self) -> bool:
        """Check if SMTP is properly configured."""
        return all([
            self.smtp_host,
            self.smtp_user,
            self.smtp_password,
            self.smtp_from,
            self.alert_recipients_list,
        ])

    @property
    def whatsapp_configured(self) -> bool:
        """Check if WhatsApp Cloud API credentials are present."""
        return bool(self.whatsapp_access_token and self.whatsapp_phone_number_id)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore unknown environment variables


# Global settings instance
settings = Settings()


def to_local_iso(dt: Optional[datetime]) -> Optional[str]:
    """Convert UTC datetime to configured timezone ISO string.

    Args:
        dt: Datetime object (assumed UTC if naive).

    Returns:
        ISO format string with timezone offset, or None if input is None.
    """
    if dt is None:
        return None

    # Assume naive datetime is UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))

    local_dt = dt.astimezone(settings.tz)
    return local_dt.isoformat()


def epoch_ms_to_local_iso(epoch_ms: Optional[int]) -> Optional[str]:
    """Convert epoch milliseconds to configured timezone ISO string."""
    if epoch_ms is None:
        return None
    return to_local_iso(datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc))
