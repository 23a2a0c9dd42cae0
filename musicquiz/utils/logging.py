"""
Logging setup for the music quiz.

Components log under dotted names (``quiz.session``, ``quiz.generator``,
``playback.bridge``, ``playback.surface``, ``catalog``). The session
controller tags its records with ``session_id`` and ``round`` through a
LoggerAdapter; both formatters here carry that context:

- JSONFormatter nests it under ``context`` (log files, aggregation)
- ColoredFormatter appends it as ``[session_id=.. round=..]`` on the
  terminal, where quiz prompts go to stdout and logs to stderr
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# Attributes present on every LogRecord; anything else came in via `extra`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%H:%M:%S"


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to *record* through ``extra`` (session id, round, slot)."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Example:
        {"timestamp": "...", "level": "INFO", "logger": "quiz.session",
         "message": "Round started with 4 candidates",
         "context": {"session_id": "a1b2c3d4", "round": 2}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        context = record_context(record)
        if context:
            log_obj["context"] = context

        return json.dumps(log_obj, default=str)


class ColoredFormatter(logging.Formatter):
    """Terminal formatter: colored level names plus the record's quiz context."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, colored: bool = True):
        super().__init__(fmt, datefmt)
        self.colored = colored

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        if self.colored:
            record.levelname = f"{self.COLORS.get(original, '')}{original}{self.RESET}"
        try:
            line = super().format(record)
        finally:
            record.levelname = original

        context = record_context(record)
        if context:
            tags = " ".join(f"{key}={value}" for key, value in context.items())
            line = f"{line} [{tags}]"
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure the root logger for a quiz run.

    Args:
        level: Log level name, case-insensitive
        log_format: Console format, "text" or "json"
        log_file: Optional path of a rotating JSON log
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
        console_enabled: Log to stderr
        colored: Color level names on the console (text format only)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    if console_enabled:
        if log_format == "json":
            console_formatter: logging.Formatter = JSONFormatter()
        else:
            console_formatter = ColoredFormatter(TEXT_FORMAT, DATE_FORMAT, colored=colored)
        # stdout belongs to the quiz prompts
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        # Files are always JSON
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def setup_logging_from_config(logging_config: Dict[str, Any], verbose: bool = False) -> None:
    """
    Configure logging from the ``logging`` section of the quiz config.

    Args:
        logging_config: Section with ``level``, ``format`` and ``file``
        verbose: Force DEBUG regardless of the configured level
    """
    setup_logging(
        level="DEBUG" if verbose else logging_config.get("level") or "INFO",
        log_format=logging_config.get("format") or "text",
        log_file=logging_config.get("file"),
        colored=sys.stderr.isatty(),
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for a quiz component, e.g. ``get_logger("quiz.generator")``."""
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter whose context is merged into every record's ``extra``.

    ``self.extra`` stays mutable: the session controller bumps
    ``logger.extra["round"]`` as rounds advance. Per-call ``extra`` wins
    over the stored context.
    """

    def process(
        self, msg: str, kwargs: Dict[str, Any]
    ) -> tuple[str, Dict[str, Any]]:
        extra = dict(self.extra)
        extra.update(kwargs.get("extra", {}))
        kwargs["extra"] = extra
        return msg, kwargs


def create_logger_with_context(
    name: str, context: Dict[str, Any]
) -> LoggerAdapter:
    """
    Create a component logger carrying persistent context.

    Example:
        logger = create_logger_with_context(
            "quiz.session", {"session_id": "a1b2c3d4", "round": 0}
        )
        logger.info("Round started")
    """
    return LoggerAdapter(get_logger(name), context)
