"""Port Monitor entry point.

Logging is configured on import so that ``uvicorn port_monitor.main:app``
and ``python -m port_monitor.main`` share the same handlers.
"""

import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

import uvicorn

from port_monitor.config import settings

SERVICE_NAME = "port-monitor"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("apscheduler", "httpx", "uvicorn.access", "aiosmtplib")


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format != "json":
        return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    from pythonjsonlogger import jsonlogger

    class MonitorJsonFormatter(jsonlogger.JsonFormatter):
        def add_fields(self, log_record, record, message_dict):
            super().add_fields(log_record, record, message_dict)
            log_record["timestamp"] = (
                datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
            )
            log_record["level"] = record.levelname
            log_record["logger"] = record.name
            log_record["service"] = SERVICE_NAME

    return MonitorJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")


def configure_logging():
    """Send logs to stdout and to a rotating file under ``data_dir/logs``."""
    log_dir = settings.data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = _build_formatter(settings.log_format)
    handlers = [
        logging.StreamHandler(sys.stdout),
        RotatingFileHandler(
            log_dir / "app.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        ),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.root.handlers = handlers
    logging.root.setLevel(getattr(logging, settings.log_level.upper()))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()

logger = logging.getLogger(__name__)


def _log_startup_summary(version: str) -> None:
    logger.info("Starting Port Monitor v%s", version)
    logger.info(
        "Cycle every %ds, probe timeout %.1fs, escalate after %ds",
        settings.check_interval_seconds,
        settings.probe_timeout_seconds,
        settings.escalation_threshold_seconds,
    )
    logger.info("Roster: %s", settings.targets_file or "built-in")
    logger.info(
        "Channels: email=%s whatsapp=%s",
        settings.smtp_configured,
        settings.whatsapp_configured,
    )


def main():
    """Run the application."""
    from port_monitor.version import __version__

    _log_startup_summary(__version__)
    uvicorn.run(
        app,
        host=settings.web_host,
        port=settings.web_port,
        log_level=settings.log_level.lower(),
    )


# Imported after logging so startup messages use the configured handlers
from port_monitor.web.app import app  # noqa: E402

if __name__ == "__main__":
    main()
