"""Audit log configuration.

Every structlog event is rendered as one line,
``[YYYY-mm-dd HH:MM:SS+zzzz] [LEVEL] event key=value ...``, appended to the audit
file and echoed to stderr.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, TextIO

import structlog

from host_hardener.exceptions import ConfigWriteError

LOGGER_NAME = "host_hardener"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S%z"

_LEVEL_LABELS: Dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARN",
    "warn": "WARN",
    "error": "ERROR",
    "exception": "ERROR",
    "critical": "ERROR",
}


def add_local_timestamp(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Stamp events with local time including the UTC offset."""
    event_dict["timestamp"] = datetime.now().astimezone().strftime(TIMESTAMP_FORMAT)
    return event_dict


def render_audit_line(
    _logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> str:
    """Final structlog processor producing the audit line format."""
    timestamp = event_dict.pop("timestamp", "")
    level = event_dict.pop("level", method_name)
    event = event_dict.pop("event", "")
    event_dict.pop("logger", None)

    line = f"[{timestamp}] [{_LEVEL_LABELS.get(level, level.upper())}] {event}"
    extras = " ".join(f"{key}={value}" for key, value in event_dict.items())
    return f"{line} {extras}" if extras else line


def configure_logging(
    log_file: Optional[Path],
    level: str = "INFO",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Route structlog through stdlib logging to the audit file and stderr.

    Args:
        log_file: Append-only audit file, created with mode 0600; None disables it
        level: Minimum level name
        stream: Console stream, stderr by default

    Returns:
        The package's stdlib logger

    Raises:
        ConfigWriteError: If the audit file cannot be opened
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    formatter = logging.Formatter("%(message)s")

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            log_file.touch(exist_ok=True)
            os.chmod(log_file, 0o600)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            raise ConfigWriteError(f"Cannot open audit log {log_file}: {e}") from e
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            add_local_timestamp,
            render_audit_line,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    return logger
