"""
Centralized JSON logging configuration.

Provides structured JSON log output compatible with Grafana/Loki/ELK.
Logs go to stderr so that terminal preview output on stdout stays clean.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import IO, Optional

from pythonjsonlogger import jsonlogger

from shared.logging.correlation import get_correlation_id


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with standardized field names."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = self.formatTime(record)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        cid = get_correlation_id()
        if cid:
            log_record['correlation_id'] = cid
        if record.exc_info and not log_record.get('exc_info'):
            log_record['exception'] = self.formatException(record.exc_info)
        # Remove redundant fields (already mapped above)
        log_record.pop('levelname', None)
        log_record.pop('name', None)


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Configure JSON structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for a rotating log file; no file logging when None
        stream: Console stream, stderr by default
    """
    formatter = CustomJsonFormatter(
        fmt='%(timestamp)s %(level)s %(logger)s %(message)s'
    )

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        # JSON with rotation: 50MB per file, 5 backups
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "chatnimate.log"),
            maxBytes=50 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiogram").setLevel(logging.INFO)
