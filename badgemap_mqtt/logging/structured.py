"""
Structured JSON Logger
=====================

Bounded Context: Observability

One JSON object per log line, keyed by a LogEvent so rejections and
transport failures can be counted in a log aggregator without parsing
free text.

Line layout:
    {
        "timestamp": "2025-10-24T15:30:45.123456+00:00",
        "level": "WARNING",
        "component": "engine",
        "event": "error.missing_coordinates",
        "message": "Dropped position_update message",
        "metadata": {"badge_id": "AA:01", "kind": "position_update"},
        "exception": {"type": "MissingCoordinates", "message": "..."}
    }

"metadata" and "exception" are omitted when empty. Only ERROR lines carry
a traceback; rejections are expected traffic and log the exception summary
alone.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class _PassthroughFormatter(logging.Formatter):
    """The record message is already a JSON document."""

    def format(self, record: logging.LogRecord) -> str:
        line = record.getMessage()
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger:
    """
    JSON logger for one component.

    Backed by the stdlib logger "badgemap.<component>", so handlers and
    levels can still be set through the logging module.
    """

    def __init__(self, component: str, level: int = logging.INFO):
        self.component = component
        self.logger = logging.getLogger(f"badgemap.{component}")
        self.logger.setLevel(level)

        # Several StructuredLoggers may share a component name
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(_PassthroughFormatter())
            self.logger.addHandler(handler)

    def _emit(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': logging.getLevelName(level),
            'component': self.component,
            'event': event.value,
            'message': message,
        }
        if metadata:
            entry['metadata'] = metadata
        if exc_info is not None:
            entry['exception'] = {'type': type(exc_info).__name__, 'message': str(exc_info)}

        traceback = exc_info if level >= logging.ERROR else None
        self.logger.log(level, json.dumps(entry, default=str), exc_info=traceback)

    def debug(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        self._emit(logging.DEBUG, event, message, metadata)

    def info(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Example:
            >>> logger.info(
            ...     event=LogEvent.STORE_REPLACED,
            ...     message="Store replaced from bulk import",
            ...     metadata={'badge_count': 12, 'geofence_count': 4}
            ... )
        """
        self._emit(logging.INFO, event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """Rejected input: pass the typed exception as exc_info."""
        self._emit(logging.WARNING, event, message, metadata, exc_info)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """Failures of our own making; exc_info adds a traceback."""
        self._emit(logging.ERROR, event, message, metadata, exc_info)


def create_logger(component: str, level: int = logging.INFO) -> StructuredLogger:
    """
    Build the StructuredLogger for a component.

    Example:
        >>> log = create_logger("engine", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
