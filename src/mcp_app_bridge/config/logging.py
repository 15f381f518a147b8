"""
Centralized logging configuration for the MCP App bridge.

Tool payloads routinely carry upstream credentials, so secret redaction
is always active. File logging with rotation is optional.
"""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from mcp_app_bridge.config.defaults import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_MAX_BYTES,
)
from mcp_app_bridge.config.enums import LogFormat


# ── Secret redaction ─────────────────────────────────────────────────────────

_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Bearer tokens: "Bearer eyJ..." or "Bearer sk-..."
    (re.compile(r"(Bearer\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    # API keys: sk-... (OpenAI style)
    (re.compile(r"\bsk-[A-Za-z0-9_-]{10,}\b"), "[REDACTED_API_KEY]"),
    # "api_key=..." or "api-key:..." values
    (
        re.compile(r"(api[_-]?key\s*[=:]\s*)['\"]?\S+['\"]?", re.IGNORECASE),
        r"\1[REDACTED]",
    ),
    # JSON-ish token fields: "access_token": "..." / "refresh_token": "..."
    (
        re.compile(r'("(?:access|refresh)_token"\s*:\s*")[^"]+(")', re.IGNORECASE),
        r"\1[REDACTED]\2",
    ),
]


class SecretRedactingFilter(logging.Filter):
    """Logging filter that redacts secrets from log messages.

    Applied to every handler installed by :func:`setup_logging`.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in _SECRET_PATTERNS:
                record.msg = pattern.sub(replacement, record.msg)
        if record.args:
            formatted = record.getMessage()
            for pattern, replacement in _SECRET_PATTERNS:
                formatted = pattern.sub(replacement, formatted)
            record.msg = formatted
            record.args = None
        return True


secret_filter = SecretRedactingFilter()


# ── Core setup ───────────────────────────────────────────────────────────────

_CONSOLE_FORMATS: dict[LogFormat, str] = {
    LogFormat.SIMPLE: "%(levelname)-8s %(message)s",
    LogFormat.DETAILED: (
        "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d - %(message)s"
    ),
    LogFormat.JSON: (
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"message": "%(message)s", "logger": "%(name)s"}'
    ),
}


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    quiet: bool = False,
    verbose: bool = False,
    format_style: LogFormat | str = LogFormat.SIMPLE,
    log_file: str | None = None,
) -> None:
    """
    Configure logging for the bridge and its dependencies.

    Args:
        level: Base logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        quiet: If True, suppress most output except errors
        verbose: If True, enable debug logging
        format_style: A :class:`LogFormat` (or its value) for console lines
        log_file: Optional path for a rotating DEBUG-level file log.
                  Expands ~ and creates parent directories.

    Raises:
        ValueError: unknown *level* or *format_style*.
    """
    if quiet:
        log_level = logging.ERROR
    elif verbose:
        log_level = logging.DEBUG
    else:
        numeric_level = getattr(logging, level.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f"Invalid log level: {level}")
        log_level = numeric_level

    try:
        style = LogFormat(format_style)
    except ValueError as exc:
        raise ValueError(f"Invalid log format: {format_style}") from exc

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMATS[style]))
    console_handler.setLevel(log_level)
    console_handler.addFilter(secret_filter)

    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        _add_file_handler(root_logger, log_file)

    # websockets logs every frame at DEBUG; keep it quiet unless asked
    if log_level > logging.DEBUG:
        for logger_name in ("websockets", "asyncio"):
            logging.getLogger(logger_name).setLevel(logging.ERROR)

    logging.getLogger("mcp_app_bridge").setLevel(log_level)


def _add_file_handler(root_logger: logging.Logger, log_file: str) -> None:
    """Add a rotating file handler with JSON format and secret redaction."""
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    file_formatter = logging.Formatter(
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"logger": "%(name)s", "line": %(lineno)d, "message": "%(message)s"}'
    )

    file_handler = RotatingFileHandler(
        str(path),
        maxBytes=DEFAULT_LOG_MAX_BYTES,
        backupCount=DEFAULT_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)
    file_handler.addFilter(secret_filter)

    # File handler always logs at DEBUG so root must accept DEBUG too
    if root_logger.level > logging.DEBUG:
        root_logger.setLevel(logging.DEBUG)

    root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under ``mcp_app_bridge``."""
    return logging.getLogger(f"mcp_app_bridge.{name}")
