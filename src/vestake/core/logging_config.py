"""
vestake - Structured Logging Configuration

Every engine module logs through ``logging.getLogger(__name__)`` with an
``extra={"event": ...}`` payload. This module attaches JSON handlers to the
``vestake`` logger tree so those payloads come out as one JSON object per
line, on stdout and optionally in a rotating file.

Usage:
    from vestake.core.logging_config import setup_staking_logging

    setup_staking_logging()   # honours VESTAKE_LOG_LEVEL / VESTAKE_LOG_FILE
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from . import config

DEFAULT_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter stamping each record with service metadata.

    Adds an ISO-8601 UTC timestamp, the deployment environment, the service
    name, the lower-cased level and the source location.
    """

    def __init__(
        self,
        fmt: str = DEFAULT_FORMAT,
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "vestake",
    ):
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or config.LOG_ENVIRONMENT
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["environment"] = self.environment
        log_record["service"] = self.service_name
        log_record["source"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "vestake",
    log_file: Optional[str] = None,
    level: Optional[str] = None,
    environment: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Attach JSON handlers to the ``name`` logger, replacing any it had.

    Args:
        name: Logger to configure; child loggers inherit its handlers
        log_file: Rotating JSON log file, created with its parent directory
        level: Level name; defaults to VESTAKE_LOG_LEVEL
        environment: Environment tag; defaults to VESTAKE_ENVIRONMENT
        enable_console: Emit to stdout
        enable_file: Emit to ``log_file`` when one is given
        max_bytes: Size at which the file rotates
        backup_count: Rotated files kept

    Returns:
        The configured logger
    """
    level_value = getattr(logging, (level or config.LOG_LEVEL).upper())
    logger = logging.getLogger(name)
    logger.setLevel(level_value)
    logger.handlers = []

    formatter = CustomJsonFormatter(
        environment=environment,
        service_name=name.split(".")[0],
    )

    handlers: list[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if enable_file and log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
            )
        except OSError as exc:
            logger.warning(
                "Could not open log file %s: %s",
                log_file,
                exc,
                extra={"event": "logging.file_unavailable", "log_file": log_file},
            )

    for handler in handlers:
        handler.setLevel(level_value)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str, log_file: Optional[str] = None, level: Optional[str] = None) -> logging.Logger:
    """Return ``name``, configuring it with JSON handlers on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logging(name=name, log_file=log_file, level=level)
    return logger


def setup_staking_logging() -> logging.Logger:
    """Configure the ``vestake`` logger tree from environment settings."""
    return setup_logging(
        name="vestake",
        log_file=config.LOG_FILE,
        level=config.LOG_LEVEL,
        environment=config.LOG_ENVIRONMENT,
    )
