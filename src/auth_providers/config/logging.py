"""Logging setup for processes embedding the identity provider core.

Call configure_logging_from_settings(get_settings()) once at startup. Library
modules only ever use logging.getLogger(__name__).
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from auth_providers.config.settings import Settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# httpx logs every request URL at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, stamped with the service name."""

    def __init__(self, service_name: Optional[str] = None):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service_name:
            payload["service"] = self.service_name
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_format: str = "json",
    service_name: Optional[str] = None
) -> None:
    """Install a single stream handler on the root logger.

    Args:
        level: Logging level, as a number or a name such as "INFO"
        log_format: "json" for structured output, anything else for plain text
        service_name: Added to every JSON record when given
    """
    level = _resolve_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if log_format.lower() == "json":
        handler.setFormatter(JsonFormatter(service_name))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def configure_logging_from_settings(settings: Settings) -> None:
    """Apply log_level, log_format and service_name from settings."""
    configure_logging(settings.log_level, settings.log_format, settings.service_name)
