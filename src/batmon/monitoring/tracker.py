"""
Next-Hop Stability Tracker

Remembers the last next hop seen for every originator and classifies each
new observation as unchanged, changed or new. The table only ever grows:
nodes that disappear from the mesh keep their entry for the lifetime of
the collector.

Mesh sizes are tens to a few hundred nodes, so lookups are a linear scan
over insertion-ordered storage.
"""

import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from .errors import AllocationError

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_CAPACITY = 16
GROWTH_FACTOR = 1.5


class StabilityState(Enum):
    """Outcome of observing an originator's next hop"""
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    NEW = "new"
    ALLOCATION_FAILURE = "allocation_failure"

    @property
    def signal(self) -> float:
        """Value emitted as the hop_stability metric"""
        return 0.0 if self is StabilityState.CHANGED else 1.0


@dataclass
class TrackedNode:
    """An originator and the next hop it was last routed through"""
    originator: int
    next_hop: int


class NodeTable:
    """
    Append-only table of TrackedNode with explicit capacity.

    Storage is a slot list that grows by GROWTH_FACTOR when full. The grown
    slot list is built before it replaces the old one, so a failed growth
    leaves the existing entries, size and capacity untouched.

    Example:
        table = NodeTable(initial_capacity=4)
        table.append(TrackedNode(0x02aabbccdd01, 0x02aabbccdd01))
        node = table.find(0x02aabbccdd01)
    """

    def __init__(self, initial_capacity: int = DEFAULT_INITIAL_CAPACITY,
                 max_nodes: int = 0):
        """
        Args:
            initial_capacity: Slots allocated up front (at least 1)
            max_nodes: Hard ceiling on entries, 0 for no limit
        """
        if initial_capacity < 1:
            raise ValueError(f"initial_capacity must be positive, got {initial_capacity}")
        if max_nodes < 0:
            raise ValueError(f"max_nodes must not be negative, got {max_nodes}")

        self.max_nodes = max_nodes
        if max_nodes:
            initial_capacity = min(initial_capacity, max_nodes)
        self._slots: List[Optional[TrackedNode]] = [None] * initial_capacity
        self._size = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[TrackedNode]:
        for i in range(self._size):
            yield self._slots[i]

    def find(self, originator: int) -> Optional[TrackedNode]:
        """Linear scan for an originator, None if unknown"""
        for i in range(self._size):
            node = self._slots[i]
            if node.originator == originator:
                return node
        return None

    def append(self, node: TrackedNode) -> None:
        """Store a new node at the end of the table.

        Raises:
            AllocationError: the table is at max_nodes or could not grow
        """
        if self._size == len(self._slots):
            self._grow()
        self._slots[self._size] = node
        self._size += 1

    def _next_capacity(self) -> int:
        current = len(self._slots)
        wanted = max(current + 1, math.ceil(current * GROWTH_FACTOR))
        if self.max_nodes:
            if current >= self.max_nodes:
                raise AllocationError(
                    f"Node table full at {current} entries",
                    capacity=current
                )
            wanted = min(wanted, self.max_nodes)
        return wanted

    def _grow(self) -> None:
        new_capacity = self._next_capacity()
        try:
            grown = self._slots + [None] * (new_capacity - len(self._slots))
        except MemoryError:
            raise AllocationError(
                f"Could not grow node table to {new_capacity} entries",
                capacity=len(self._slots)
            )
        logger.debug(f"Node table grown from {len(self._slots)} to {new_capacity} slots")
        self._slots = grown


class StabilityTracker:
    """
    Per-originator next-hop stability state machine.

    Usage:
        tracker = StabilityTracker()
        state = tracker.observe(originator, next_hop)
        stability = state.signal
    """

    def __init__(self, initial_capacity: int = DEFAULT_INITIAL_CAPACITY,
                 max_nodes: int = 0):
        self._table = NodeTable(initial_capacity=initial_capacity, max_nodes=max_nodes)

    def observe(self, originator: int, next_hop: int) -> StabilityState:
        """Record a next hop observation for an originator.

        Returns:
            UNCHANGED if the stored hop matches, CHANGED (and the stored hop
            is replaced) if it differs, NEW when the originator is first seen,
            ALLOCATION_FAILURE when a new originator could not be stored.
        """
        node = self._table.find(originator)
        if node is not None:
            if node.next_hop == next_hop:
                return StabilityState.UNCHANGED
            node.next_hop = next_hop
            return StabilityState.CHANGED

        try:
            self._table.append(TrackedNode(originator=originator, next_hop=next_hop))
        except AllocationError as e:
            logger.debug(f"Originator {originator:x} not tracked: {e}")
            return StabilityState.ALLOCATION_FAILURE
        return StabilityState.NEW

    def last_hop(self, originator: int) -> Optional[int]:
        """Next hop stored for an originator, None if it is not tracked"""
        node = self._table.find(originator)
        return node.next_hop if node else None

    def snapshot(self) -> List[Tuple[int, int]]:
        """(originator, next_hop) pairs in first-seen order"""
        return [(node.originator, node.next_hop) for node in self._table]

    @property
    def capacity(self) -> int:
        return self._table.capacity

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, originator: int) -> bool:
        return self._table.find(originator) is not None
