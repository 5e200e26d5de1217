"""
batman-adv Collector

Host-facing object with an explicit lifecycle:

    collector = Collector(sink=LoggingSink())
    collector.init()          # creates the stability tracker
    collector.read()          # one sampling pass, call on a timer
    collector.shutdown()      # releases the tracker and the sink

The tracker lives from init() to shutdown(), so next-hop history carries
over between passes (including failed ones) but never across restarts.
"""

import logging
from typing import Callable, Optional

from .commands import batctl
from .commands.base import CommandResult
from .monitoring.events import CollectorEvent, EventLog
from .monitoring.sampler import SamplingPass
from .monitoring.sinks import MetricSink
from .monitoring.tracker import DEFAULT_INITIAL_CAPACITY, StabilityTracker
from .utils import env_config

logger = logging.getLogger(__name__)


class Collector:
    """
    Periodic originator table collector.

    Args:
        sink: Destination for metric batches
        command: Table command, split shell-style (default "batctl o")
        input_path: Replay a saved table dump instead of running command
        hostname: Host tag on every batch (default: system hostname)
        initial_capacity: Starting size of the node table
        max_nodes: Ceiling on tracked originators, 0 for no limit
        timeout: Seconds to wait for the command to exit after reading
        open_stream: Custom stream factory, overrides command/input_path
    """

    def __init__(self, sink: MetricSink,
                 command: str = batctl.DEFAULT_COMMAND,
                 input_path: Optional[str] = None,
                 hostname: Optional[str] = None,
                 initial_capacity: int = DEFAULT_INITIAL_CAPACITY,
                 max_nodes: int = 0,
                 timeout: Optional[float] = None,
                 open_stream: Optional[Callable[[], object]] = None,
                 events: Optional[EventLog] = None):
        self.sink = sink
        self.command = command
        self.input_path = input_path
        self.hostname = hostname
        self.initial_capacity = initial_capacity
        self.max_nodes = max_nodes
        self.timeout = timeout
        self.events = events if events is not None else EventLog()
        self._open_stream = open_stream

        self.tracker: Optional[StabilityTracker] = None
        self._sampler: Optional[SamplingPass] = None
        self.passes = 0
        self.failures = 0
        self.last_result: Optional[CommandResult] = None

    @classmethod
    def from_config(cls, sink: MetricSink, **overrides) -> 'Collector':
        """Build a collector from BATMON_* environment settings."""
        settings = dict(
            command=env_config.get_config('BATMON_COMMAND'),
            hostname=env_config.get_hostname(),
            initial_capacity=env_config.get_config_int('BATMON_INITIAL_CAPACITY', DEFAULT_INITIAL_CAPACITY),
            max_nodes=env_config.get_config_int('BATMON_MAX_NODES', 0),
            timeout=env_config.get_config_float('BATMON_COMMAND_TIMEOUT', 30.0) or None,
        )
        settings.update({k: v for k, v in overrides.items() if v is not None})
        return cls(sink=sink, **settings)

    @property
    def is_initialized(self) -> bool:
        return self.tracker is not None

    def open_stream(self):
        """Stream factory used by each pass"""
        if self._open_stream is not None:
            return self._open_stream()
        if self.input_path:
            return batctl.open_file(self.input_path)
        return batctl.open_table(self.command, timeout=self.timeout)

    def init(self) -> None:
        """Create the stability tracker. Calling init() twice keeps the first one."""
        if self.is_initialized:
            logger.debug("Collector already initialized")
            return

        self.tracker = StabilityTracker(
            initial_capacity=self.initial_capacity,
            max_nodes=self.max_nodes
        )
        self._sampler = SamplingPass(
            tracker=self.tracker,
            sink=self.sink,
            open_stream=self.open_stream,
            events=self.events,
            hostname=self.hostname,
        )
        source = self.input_path or self.command
        logger.info(f"batman-adv collector ready (source: {source})")

    def read(self) -> CommandResult:
        """Run one sampling pass."""
        if not self.is_initialized:
            return CommandResult.fail("Collector not initialized", error="call init() first")

        result = self._sampler.run()
        self.passes += 1
        if not result:
            self.failures += 1
        self.last_result = result
        return result

    def on_event(self, callback: Callable[[CollectorEvent], None]) -> None:
        """Register a listener for warning events"""
        self.events.add_listener(callback)

    def shutdown(self) -> None:
        """Drop tracked state and close the sink."""
        if self.tracker is not None:
            logger.info(f"Collector shutting down after {self.passes} passes, "
                        f"{len(self.tracker)} originators tracked")
        self.tracker = None
        self._sampler = None
        self.sink.close()
