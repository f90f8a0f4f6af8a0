"""JSON logging for the DocVault service.

Every record is emitted as one JSON object per line to stdout and to an
append-mode debug file.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Extra attributes copied from the log record into the payload when present
_EXTRA_FIELDS = (
    "request_id",
    "route",
    "method",
    "status",
    "type",
    "event_type",
    "account",
    "success",
    "content_id",
)


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in _EXTRA_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(
    log_file: str = None,
    log_level: str = None,
):
    """Configure logging with JSON formatter.

    Args:
        log_file: Path to log file. Defaults to DOCVAULT_LOG_FILE env var or 'docvault.log'.
        log_level: Log level. Defaults to DOCVAULT_LOG_LEVEL env var or 'INFO'.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())

    log_file = log_file or os.getenv("DOCVAULT_LOG_FILE", "docvault.log")
    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    log_level = log_level or os.getenv("DOCVAULT_LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.handlers = [console_handler, file_handler]
