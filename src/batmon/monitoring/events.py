"""
Collector Event Reporting

Warning conditions raised during a sampling pass are reported as
structured events (severity, code, context) instead of free-text log
calls. Every event is written to the module logger and handed to any
registered listener so an embedding host can render it its own way.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventSeverity(Enum):
    """Severity levels for events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def log_level(self) -> int:
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    EventSeverity.DEBUG: logging.DEBUG,
    EventSeverity.INFO: logging.INFO,
    EventSeverity.WARNING: logging.WARNING,
    EventSeverity.ERROR: logging.ERROR,
}


class EventCode(Enum):
    """What went wrong during a pass"""
    STREAM_OPEN_FAILED = "stream_open_failed"
    PARSE_FAILED = "parse_failed"
    TRACKER_GROWTH_FAILED = "tracker_growth_failed"
    STREAM_READ_FAILED = "stream_read_failed"
    STREAM_CLOSE_FAILED = "stream_close_failed"


@dataclass
class CollectorEvent:
    """A single collector event."""
    severity: EventSeverity
    code: EventCode
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity.value,
            "code": self.code.value,
            "message": self.message,
            "context": self.context,
        }

    def to_log_line(self) -> str:
        """Format as single log line."""
        details = " ".join(f"{k}={v!r}" for k, v in self.context.items())
        if details:
            return f"[{self.code.value}] {self.message} ({details})"
        return f"[{self.code.value}] {self.message}"


class EventLog:
    """
    Event sink shared by the collector components.

    Keeps the most recent events in memory and fans each one out to the
    logger and to registered callbacks. A failing callback is logged and
    does not stop the others.
    """

    def __init__(self, history: int = 100):
        self._events: deque = deque(maxlen=history)
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[CollectorEvent], None]] = []

    def add_listener(self, callback: Callable[[CollectorEvent], None]) -> None:
        self._callbacks.append(callback)

    def remove_listener(self, callback: Callable[[CollectorEvent], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def report(self, code: EventCode, message: str,
               severity: EventSeverity = EventSeverity.WARNING,
               **context) -> CollectorEvent:
        """Record an event, log it and notify listeners."""
        event = CollectorEvent(
            severity=severity,
            code=code,
            message=message,
            context=context,
        )

        with self._lock:
            self._events.append(event)

        logger.log(severity.log_level, event.to_log_line())

        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in event callback: {e}")

        return event

    def recent(self, count: Optional[int] = None,
               code: Optional[EventCode] = None) -> List[CollectorEvent]:
        """Most recent events, oldest first"""
        with self._lock:
            events = list(self._events)
        if code is not None:
            events = [e for e in events if e.code == code]
        if count is not None:
            events = events[-count:]
        return events

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
