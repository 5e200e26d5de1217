"""
Sampling Pass

One pass reads the whole originator table, runs every entry through the
stability tracker and dispatches a MetricBatch per entry:

    freshness      gauge    seconds since the originator was last seen
    quality        counter  transmit quality, 0-255
    hop_stability  gauge    1.0 unchanged or new next hop, 0.0 changed

All batches of a pass carry the capture time taken when the pass started.
A malformed line ends the pass with a failure; batches dispatched before it
stay dispatched and the tracker keeps what it learned.
"""

import time
import socket
import logging
from typing import Callable, Iterator, Optional

from ..commands.base import CommandResult
from .errors import ParseError, StreamCloseError, StreamOpenError, StreamReadError
from .events import EventCode, EventLog
from .originators import OriginatorEntry, parse_line, skip_header
from .sinks import (
    FRESHNESS, HOP_STABILITY, QUALITY,
    MetricBatch, MetricSample, MetricSink, SampleKind,
)
from .tracker import StabilityState, StabilityTracker

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILURE = "failure"


def build_batch(entry: OriginatorEntry, state: StabilityState,
                host: str, capture_time: float) -> MetricBatch:
    """Assemble the three samples for one originator entry."""
    return MetricBatch(
        host=host,
        type_instance=entry.label,
        time=capture_time,
        samples=[
            MetricSample(FRESHNESS, entry.age, SampleKind.GAUGE),
            MetricSample(QUALITY, entry.quality, SampleKind.COUNTER),
            MetricSample(HOP_STABILITY, state.signal, SampleKind.GAUGE),
        ],
    )


def read_lines(stream) -> Iterator[str]:
    """Iterate a table stream, raising StreamReadError if the source breaks."""
    lines = iter(stream)
    while True:
        try:
            line = next(lines)
        except StopIteration:
            return
        except (OSError, UnicodeError) as e:
            raise StreamReadError(f"Cannot read originator table: {e}") from e
        yield line


class SamplingPass:
    """
    Runs sampling passes against one tracker and one sink.

    open_stream is called once per pass and must return an iterable of lines
    with a close() method (see batmon.commands.batctl.TableStream). It
    raises StreamOpenError when the table cannot be read at all.

    Example:
        sampler = SamplingPass(tracker, sink, lambda: batctl.open_table("batctl o"))
        result = sampler.run()
        if not result:
            print(result.error)
    """

    def __init__(self, tracker: StabilityTracker, sink: MetricSink,
                 open_stream: Callable[[], object],
                 events: Optional[EventLog] = None,
                 hostname: Optional[str] = None,
                 clock: Callable[[], float] = time.time):
        self.tracker = tracker
        self.sink = sink
        self.open_stream = open_stream
        self.events = events if events is not None else EventLog()
        self.hostname = hostname or socket.gethostname()
        self.clock = clock

    def run(self) -> CommandResult:
        """Execute one pass.

        Returns:
            CommandResult; data holds 'outcome' (success/failure), 'time',
            'dispatched' and per-state counters.
        """
        capture_time = self.clock()
        stats = {
            'time': capture_time,
            'dispatched': 0,
            'new': 0,
            'changed': 0,
            'unchanged': 0,
            'untracked': 0,
        }

        try:
            stream = self.open_stream()
        except StreamOpenError as e:
            self.events.report(
                EventCode.STREAM_OPEN_FAILED,
                "Cannot read originator table",
                command=e.command,
                error=str(e),
            )
            stats['outcome'] = FAILURE
            return CommandResult.fail("Cannot read originator table", error=str(e), data=stats)

        try:
            return self._read(stream, capture_time, stats)
        except StreamReadError as e:
            self.events.report(
                EventCode.STREAM_READ_FAILED,
                "Originator table stream broke off",
                error=str(e),
                dispatched=stats['dispatched'],
            )
            stats['outcome'] = FAILURE
            return CommandResult.fail(
                f"Read error after {stats['dispatched']} entries",
                error=str(e),
                data=stats
            )
        finally:
            self._close(stream)

    def _read(self, stream, capture_time: float, stats: dict) -> CommandResult:
        lines = read_lines(stream)
        line_number = skip_header(lines)

        for line in lines:
            line_number += 1
            if not line.strip():
                continue

            try:
                entry = parse_line(line, line_number=line_number)
            except ParseError as e:
                self.events.report(
                    EventCode.PARSE_FAILED,
                    "Malformed originator table line",
                    line_number=e.line_number,
                    line=e.line,
                )
                stats['outcome'] = FAILURE
                stats['line_number'] = e.line_number
                stats['line'] = e.line
                return CommandResult.fail(
                    f"Parse error after {stats['dispatched']} entries",
                    error=str(e),
                    raw=e.line,
                    data=stats
                )

            state = self.tracker.observe(entry.originator, entry.next_hop)
            if state is StabilityState.ALLOCATION_FAILURE:
                stats['untracked'] += 1
                self.events.report(
                    EventCode.TRACKER_GROWTH_FAILED,
                    "Originator not tracked, node table cannot grow",
                    originator=entry.label,
                    tracked=len(self.tracker),
                )
            else:
                stats[state.value] += 1

            self.sink.dispatch(build_batch(entry, state, self.hostname, capture_time))
            stats['dispatched'] += 1

        stats['outcome'] = SUCCESS
        logger.debug(f"Pass complete: {stats['dispatched']} originators, "
                     f"{stats['changed']} next hop changes")
        message = f"{stats['dispatched']} originators sampled"
        if stats['untracked']:
            return CommandResult.warn(f"{message}, {stats['untracked']} untracked", data=stats)
        return CommandResult.ok(message, data=stats)

    def _close(self, stream) -> None:
        try:
            stream.close()
        except StreamCloseError as e:
            self.events.report(
                EventCode.STREAM_CLOSE_FAILED,
                "Originator table stream did not close cleanly",
                error=str(e),
            )
