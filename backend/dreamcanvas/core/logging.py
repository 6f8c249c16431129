"""JSON structured logging with provider-credential masking."""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from dreamcanvas.core.errors import redact

# `extra=` keys copied into the JSON payload when present on a record.
EXTRA_FIELDS = ("provider", "status_code", "caller", "elapsed_ms")

_secrets: set[str] = set()


def register_secret(value: Optional[str]) -> None:
    """Mask ``value`` in every line written by ``JSONFormatter`` from now on."""
    if value:
        _secrets.add(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, service, message.

    Whitelisted extras and exception details are appended. Registered
    secrets are masked in every string field, so an upstream body or
    traceback that echoes an API key never reaches the log stream.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": record.name,
            "message": self._mask(record.getMessage()),
        }
        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = self._mask(value) if isinstance(value, str) else value
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["error_type"] = record.exc_info[0].__name__
            log_entry["error_detail"] = self._mask(self.formatException(record.exc_info))
        return json.dumps(log_entry, ensure_ascii=False)

    @staticmethod
    def _mask(text: str) -> str:
        return redact(text, *_secrets)


def setup_logging(service_name: str = "dreamcanvas") -> logging.Logger:
    """Return the named logger, attaching a stdout JSON handler on first use.

    The level comes from ``LOG_LEVEL`` (default ``INFO``).
    """
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    logger = logging.getLogger(service_name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

    return logger
