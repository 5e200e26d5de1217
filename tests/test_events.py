"""
Tests for collector event reporting.

Run: python3 -m pytest tests/test_events.py -v
"""

import logging

from batmon.monitoring.events import (
    CollectorEvent,
    EventCode,
    EventLog,
    EventSeverity,
)


class TestEventCode:
    """Tests for EventCode enum."""

    def test_all_codes_exist(self):
        """Test all expected codes exist."""
        assert EventCode.STREAM_OPEN_FAILED.value == "stream_open_failed"
        assert EventCode.PARSE_FAILED.value == "parse_failed"
        assert EventCode.TRACKER_GROWTH_FAILED.value == "tracker_growth_failed"
        assert EventCode.STREAM_READ_FAILED.value == "stream_read_failed"
        assert EventCode.STREAM_CLOSE_FAILED.value == "stream_close_failed"

    def test_severity_log_levels(self):
        """Severities map onto logging levels."""
        assert EventSeverity.WARNING.log_level == logging.WARNING
        assert EventSeverity.DEBUG.log_level == logging.DEBUG


class TestCollectorEvent:
    """Tests for CollectorEvent dataclass."""

    def test_to_dict(self):
        """Serialization keeps code, severity and context."""
        event = CollectorEvent(
            severity=EventSeverity.WARNING,
            code=EventCode.PARSE_FAILED,
            message="Malformed originator table line",
            context={'line_number': 4},
        )
        d = event.to_dict()

        assert d['severity'] == "warning"
        assert d['code'] == "parse_failed"
        assert d['context'] == {'line_number': 4}
        assert 'timestamp' in d

    def test_to_log_line(self):
        """Log line names the code and the context."""
        event = CollectorEvent(
            severity=EventSeverity.WARNING,
            code=EventCode.STREAM_OPEN_FAILED,
            message="Cannot read originator table",
            context={'command': 'batctl o'},
        )
        assert event.to_log_line() == "[stream_open_failed] Cannot read originator table (command='batctl o')"

    def test_to_log_line_without_context(self):
        event = CollectorEvent(EventSeverity.INFO, EventCode.PARSE_FAILED, "msg")
        assert event.to_log_line() == "[parse_failed] msg"


class TestEventLog:
    """Tests for EventLog."""

    def test_report_logs_warning(self, caplog):
        """Events are written to the logger at their severity."""
        log = EventLog()
        with caplog.at_level(logging.WARNING, logger="batmon.monitoring.events"):
            event = log.report(EventCode.PARSE_FAILED, "Malformed originator table line", line_number=3)

        assert event.severity == EventSeverity.WARNING
        assert event.context == {'line_number': 3}
        assert "parse_failed" in caplog.text
        assert caplog.records[-1].levelno == logging.WARNING

    def test_listeners(self):
        """Listeners receive every event, a failing one does not stop others."""
        log = EventLog()
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        log.add_listener(broken)
        log.add_listener(received.append)
        log.report(EventCode.STREAM_CLOSE_FAILED, "close failed")

        assert [e.code for e in received] == [EventCode.STREAM_CLOSE_FAILED]

        log.remove_listener(received.append)
        log.report(EventCode.STREAM_CLOSE_FAILED, "close failed")
        assert len(received) == 1

    def test_recent_and_filter(self):
        """History is kept oldest first and can be filtered."""
        log = EventLog(history=3)
        log.report(EventCode.PARSE_FAILED, "a")
        log.report(EventCode.STREAM_OPEN_FAILED, "b")
        log.report(EventCode.PARSE_FAILED, "c")
        log.report(EventCode.PARSE_FAILED, "d")

        assert [e.message for e in log.recent()] == ["b", "c", "d"]
        assert [e.message for e in log.recent(code=EventCode.PARSE_FAILED)] == ["c", "d"]
        assert [e.message for e in log.recent(count=1)] == ["d"]

        log.clear()
        assert log.recent() == []
