# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Logging configuration for the booking calendar service.

Upstream error messages are logged verbatim, so every record passes through
a filter that masks the configured credentials before it reaches a handler.
"""

import logging
import sys
from collections.abc import Iterable
from typing import TextIO

from booking_calendar.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
REDACTED = "***"

# Libraries that log every request or query at DEBUG
_QUIET_LIBRARIES = ("httpx", "httpcore", "aiosqlite", "reportlab")


class SecretRedactingFilter(logging.Filter):
    """Replace known secret values in log messages with ``***``."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        # Longest first so a secret containing another is masked whole
        self.secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Left for the handler, which reports bad format arguments itself
            return True
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, REDACTED)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def get_log_level() -> int:
    """Get logging level from settings, INFO when unrecognised."""
    level = logging.getLevelName(get_settings().log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def configured_secrets() -> list[str]:
    """Credentials from settings that must never appear in logs."""
    settings = get_settings()
    return [
        settings.lodgify_api_key,
        settings.owner_password,
        settings.staff_password,
        settings.session_secret,
    ]


def setup_logging(
    level: int | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure application logging.

    Args:
        level: Logging level. Defaults to settings value.
        stream: Output stream. Defaults to stderr.
    """
    if level is None:
        level = get_log_level()
    if stream is None:
        stream = sys.stderr

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    console_handler.addFilter(SecretRedactingFilter(configured_secrets()))
    root_logger.addHandler(console_handler)

    _configure_library_loggers(level)


def _configure_library_loggers(app_level: int) -> None:
    # SQLAlchemy echoes statements only when the app itself is at DEBUG
    sqlalchemy_level = logging.DEBUG if app_level == logging.DEBUG else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sqlalchemy_level)

    uvicorn_level = max(app_level, logging.INFO)
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(uvicorn_level)

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
