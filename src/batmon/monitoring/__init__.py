"""
batman-adv Originator Monitoring

Parses the `batctl o` originator table, tracks next-hop stability per
originator and turns each entry into freshness / quality / hop_stability
samples.

Usage:
    from batmon.monitoring import SamplingPass, StabilityTracker, CollectingSink

    sink = CollectingSink()
    sampler = SamplingPass(StabilityTracker(), sink, open_stream)
    result = sampler.run()
"""

from .errors import (
    CollectorError, StreamOpenError, StreamReadError, StreamCloseError, ParseError, AllocationError,
)
from .originators import OriginatorEntry, decode_address, encode_address, parse_line, parse_table
from .tracker import StabilityState, StabilityTracker, NodeTable, TrackedNode
from .events import EventCode, EventLog, EventSeverity, CollectorEvent
from .sinks import MetricBatch, MetricSample, MetricSink, CollectingSink, LoggingSink
from .sampler import SamplingPass

__all__ = [
    'CollectorError',
    'StreamOpenError',
    'StreamReadError',
    'StreamCloseError',
    'ParseError',
    'AllocationError',
    'OriginatorEntry',
    'decode_address',
    'encode_address',
    'parse_line',
    'parse_table',
    'StabilityState',
    'StabilityTracker',
    'NodeTable',
    'TrackedNode',
    'EventCode',
    'EventLog',
    'EventSeverity',
    'CollectorEvent',
    'MetricBatch',
    'MetricSample',
    'MetricSink',
    'CollectingSink',
    'LoggingSink',
    'SamplingPass',
]
