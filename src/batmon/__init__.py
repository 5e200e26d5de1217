"""
batmon - batman-adv originator table collector

Samples `batctl o` on a schedule and turns every originator entry into
three metrics: freshness, link quality and next-hop stability.

Usage:
    from batmon import Collector
    from batmon.monitoring.sinks import LoggingSink

    collector = Collector(sink=LoggingSink())
    collector.init()
    result = collector.read()
    collector.shutdown()
"""

from .__version__ import __version__
from .collector import Collector

__all__ = ['Collector', '__version__']
