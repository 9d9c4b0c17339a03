"""
Logging utilities for ConsultaBot.

Two separate concerns live here:

1. Diagnostic logging under the "consultabot" logger hierarchy.
2. The log sink: the access and error event streams every component
   records into. The sink is injected at construction, never global.

Usage:
    from logging_utils import get_logger, FileLogSink, LogKind

    logger = get_logger(__name__)
    logger.info("Starting up")

    sink = FileLogSink("logs")
    sink.record(LogKind.ACCESS, "Handler registered: GREETING")
    sink.error("Postal code not found: 00000000")
"""

import logging
import os
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

# Default format for diagnostic messages
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Sink lines look like "[2024-05-01T12:00:00.000Z] - message"
SINK_FORMAT = "[%(asctime)s] - %(message)s"

ROOT_LOGGER_NAME = "consultabot"

# Track if root logger has been configured
_root_configured = False


def configure_logging(
    level: int = logging.WARNING,
    format_str: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    stream: Optional[object] = None,
) -> None:
    """
    Configure the root logger for ConsultaBot.

    Call this once at application startup to set up logging.
    Subsequent calls will be ignored.

    Args:
        level: Logging level (default: WARNING, the console belongs to the chat)
        format_str: Log message format
        date_format: Date format for timestamps
        stream: Output stream (default: sys.stderr)
    """
    global _root_configured
    if _root_configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(format_str, date_format))

    root.addHandler(handler)
    _root_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance configured under the consultabot hierarchy.
    """
    configure_logging()

    if name.startswith("src."):
        name = name[4:]

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_verbose(verbose: bool) -> None:
    """
    Set verbose mode for all ConsultaBot loggers.

    Args:
        verbose: If True, set level to DEBUG. If False, set to WARNING.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


# =============================================================================
# Log Sink
# =============================================================================

class LogKind(Enum):
    """The two independent event streams."""
    ACCESS = "access"
    ERROR = "error"


class IsoUtcFormatter(logging.Formatter):
    """Formatter that stamps records with an ISO-8601 UTC timestamp."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FileLogSink:
    """
    Append-only access and error logs on disk.

    Both files are created on construction so they exist even before the
    first event. Each event is also echoed to the diagnostic logger at
    DEBUG level, which makes `--verbose` show the conversation trail.
    """

    def __init__(
        self,
        log_dir: str,
        access_file: str = "access.log",
        error_file: str = "errors.log",
    ):
        os.makedirs(log_dir, exist_ok=True)
        self.access_path = os.path.join(log_dir, access_file)
        self.error_path = os.path.join(log_dir, error_file)

        self._handlers = {
            LogKind.ACCESS: self._open(self.access_path),
            LogKind.ERROR: self._open(self.error_path),
        }
        self._diagnostic = get_logger("sink")

    @staticmethod
    def _open(path: str) -> logging.FileHandler:
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        handler.setFormatter(IsoUtcFormatter(SINK_FORMAT))
        return handler

    def record(self, kind: LogKind, message: str) -> None:
        """Append a timestamped message to the stream for `kind`."""
        level = logging.ERROR if kind is LogKind.ERROR else logging.INFO
        entry = logging.LogRecord(
            name=f"{ROOT_LOGGER_NAME}.{kind.value}",
            level=level,
            pathname=__file__,
            lineno=0,
            msg=message,
            args=None,
            exc_info=None,
        )
        self._handlers[kind].handle(entry)
        self._diagnostic.debug("%s: %s", kind.value, message)

    def access(self, message: str) -> None:
        self.record(LogKind.ACCESS, message)

    def error(self, message: str) -> None:
        self.record(LogKind.ERROR, message)

    def close(self) -> None:
        for handler in self._handlers.values():
            handler.close()


class MemoryLogSink:
    """
    In-memory sink with the same interface as FileLogSink.

    Usage:
        sink = MemoryLogSink()
        machine = ConversationStateMachine(sink)
        assert sink.messages(LogKind.ACCESS) == [...]
    """

    def __init__(self):
        self.events: list[tuple[LogKind, str]] = []

    def record(self, kind: LogKind, message: str) -> None:
        self.events.append((kind, message))

    def access(self, message: str) -> None:
        self.record(LogKind.ACCESS, message)

    def error(self, message: str) -> None:
        self.record(LogKind.ERROR, message)

    def messages(self, kind: LogKind) -> list[str]:
        """Messages recorded for one stream, oldest first."""
        return [message for event_kind, message in self.events if event_kind is kind]

    def close(self) -> None:
        pass
