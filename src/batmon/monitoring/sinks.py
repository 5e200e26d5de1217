"""
Metric Sinks

A sampling pass hands one MetricBatch per originator to a sink. The batch
uses the collectd value-list shape: host / plugin / type / type_instance
identify the series and all three samples share a single capture time.

Sinks:
- CollectingSink: keeps batches in memory (tests, one-shot CLI output)
- LoggingSink: one log line per batch
- JsonLinesSink: one JSON object per batch on a text stream
- PrometheusSink: labelled gauges scraped through prometheus_client
- MultiSink: several of the above at once
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, TextIO

from prometheus_client import CollectorRegistry, Gauge, start_http_server

logger = logging.getLogger(__name__)

PLUGIN_NAME = "batman_adv"
TYPE_NAME = "batman_adv_origt"

FRESHNESS = "freshness"
QUALITY = "quality"
HOP_STABILITY = "hop_stability"


class SampleKind(Enum):
    """Data source type of a sample"""
    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass
class MetricSample:
    """One named value"""
    name: str
    value: float
    kind: SampleKind = SampleKind.GAUGE

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'value': self.value,
            'kind': self.kind.value,
        }


@dataclass
class MetricBatch:
    """Samples for one originator from one pass"""
    host: str
    type_instance: str        # canonical originator label
    time: float               # capture time of the pass, epoch seconds
    samples: List[MetricSample] = field(default_factory=list)
    plugin: str = PLUGIN_NAME
    type: str = TYPE_NAME

    def value(self, name: str) -> Optional[float]:
        """Value of a named sample, None if absent"""
        for sample in self.samples:
            if sample.name == name:
                return sample.value
        return None

    def as_values(self) -> Dict[str, float]:
        return {s.name: s.value for s in self.samples}

    def to_dict(self) -> dict:
        return {
            'host': self.host,
            'plugin': self.plugin,
            'type': self.type,
            'type_instance': self.type_instance,
            'time': self.time,
            'values': [s.to_dict() for s in self.samples],
        }


class MetricSink:
    """Base class for metric destinations."""

    def dispatch(self, batch: MetricBatch) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release sink resources"""


class CollectingSink(MetricSink):
    """Keeps every dispatched batch in a list."""

    def __init__(self):
        self.batches: List[MetricBatch] = []

    def dispatch(self, batch: MetricBatch) -> None:
        self.batches.append(batch)

    def clear(self) -> None:
        self.batches.clear()

    def latest(self, type_instance: str) -> Optional[MetricBatch]:
        """Most recent batch for an originator label"""
        for batch in reversed(self.batches):
            if batch.type_instance == type_instance:
                return batch
        return None


class LoggingSink(MetricSink):
    """Writes each batch as one log line."""

    def __init__(self, level: int = logging.INFO, log: Optional[logging.Logger] = None):
        self.level = level
        self.log = log or logger

    def dispatch(self, batch: MetricBatch) -> None:
        values = " ".join(f"{s.name}={s.value:g}" for s in batch.samples)
        self.log.log(self.level, f"{batch.host}/{batch.plugin}/{batch.type}-{batch.type_instance} {values}")


class JsonLinesSink(MetricSink):
    """Writes each batch as a JSON object on its own line."""

    def __init__(self, stream: TextIO, close_stream: bool = False):
        self.stream = stream
        self.close_stream = close_stream

    def dispatch(self, batch: MetricBatch) -> None:
        self.stream.write(json.dumps(batch.to_dict()) + "\n")
        self.stream.flush()

    def close(self) -> None:
        if self.close_stream:
            self.stream.close()


class PrometheusSink(MetricSink):
    """
    Exposes the latest batch of every originator as Prometheus gauges.

    Each sink owns its registry unless one is passed in, so several sinks
    can live in one process (tests) without duplicate registration.

    Usage:
        sink = PrometheusSink(port=9532)   # serves /metrics on :9532
    """

    def __init__(self, port: int = 0, addr: str = "0.0.0.0",
                 registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        labels = ['host', 'originator']

        self.freshness = Gauge(
            'batman_adv_freshness_seconds',
            'Seconds since the last OGM from the originator',
            labels, registry=self.registry
        )
        self.quality = Gauge(
            'batman_adv_quality',
            'Transmit quality towards the originator (0-255)',
            labels, registry=self.registry
        )
        self.hop_stability = Gauge(
            'batman_adv_hop_stability',
            '1 if the next hop is unchanged since the previous pass, 0 if it changed',
            labels, registry=self.registry
        )
        self._gauges = {
            FRESHNESS: self.freshness,
            QUALITY: self.quality,
            HOP_STABILITY: self.hop_stability,
        }

        self.port = port
        if port:
            start_http_server(port, addr=addr, registry=self.registry)
            logger.info(f"Prometheus exporter listening on {addr}:{port}")

    def dispatch(self, batch: MetricBatch) -> None:
        for sample in batch.samples:
            gauge = self._gauges.get(sample.name)
            if gauge is None:
                logger.debug(f"No gauge for sample {sample.name}")
                continue
            gauge.labels(host=batch.host, originator=batch.type_instance).set(sample.value)

    def get_value(self, name: str, host: str, originator: str) -> Optional[float]:
        """Current exported value, None if never set"""
        metric = {
            FRESHNESS: 'batman_adv_freshness_seconds',
            QUALITY: 'batman_adv_quality',
            HOP_STABILITY: 'batman_adv_hop_stability',
        }[name]
        return self.registry.get_sample_value(metric, {'host': host, 'originator': originator})


class MultiSink(MetricSink):
    """Fans each batch out to several sinks, in order."""

    def __init__(self, *sinks: MetricSink):
        self.sinks = list(sinks)

    def dispatch(self, batch: MetricBatch) -> None:
        for sink in self.sinks:
            sink.dispatch(batch)

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()
