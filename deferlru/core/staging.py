"""Staging queue for evicted entries awaiting notification.

Evicted nodes are appended here from inside the cache's critical section and
released (or handed to the eviction callback) later by the purge engine. The
queue is claim-based: a purge claims the window ``[head, tail)`` that exists
when it starts, so entries appended while a callback runs wait for the next
purge. Storage before ``head`` is compacted only while no claim is pending.
"""

from __future__ import annotations

import structlog

from deferlru.core.arena import Node

log = structlog.get_logger(__name__)


class StagingQueue:
    """FIFO of evicted nodes with claim-and-compact draining."""

    def __init__(self) -> None:
        self._items: list[Node | None] = []
        self._head = 0
        self._pending = 0
        self._generation = 0

    def __len__(self) -> int:
        """Number of stored entries, including claimed but uncompacted ones."""
        return len(self._items)

    @property
    def unclaimed(self) -> int:
        return len(self._items) - self._head

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def generation(self) -> int:
        """Bumped by :meth:`discard`; claims from older generations are stale."""
        return self._generation

    def append(self, node: Node) -> bool:
        """Stage *node*; never raises into the evicting operation.

        On failure the node is dropped without notification and ``False`` is
        returned.
        """
        try:
            self._items.append(node)
        except MemoryError:
            log.warning("staging_append_failed", key=node.key)
            return False
        return True

    def extend(self, nodes: list[Node]) -> int:
        """Stage *nodes* in order; return how many were staged."""
        return sum(1 for node in nodes if self.append(node))

    def claim(self) -> range:
        """Claim every unclaimed entry, returning their positions."""
        window = range(self._head, len(self._items))
        self._head = len(self._items)
        return window

    def begin(self) -> None:
        self._pending += 1

    def end(self) -> None:
        self._pending -= 1

    def take(self, position: int, generation: int | None = None) -> Node | None:
        """Remove the claimed node at *position* from the queue and return it.

        Passing the ``generation`` read at claim time makes positions from
        before a :meth:`discard` yield ``None`` instead of newer entries.
        """
        if generation is not None and generation != self._generation:
            return None
        if position >= len(self._items):
            # discarded while the claim was outstanding
            return None
        node, self._items[position] = self._items[position], None
        return node

    def compact(self) -> int:
        """Drop processed entries in front of ``head``; only when idle."""
        if self._pending:
            return 0
        done = self._head
        if done:
            del self._items[:done]
            self._head = 0
        return done

    def discard(self) -> list[Node]:
        """Drop every entry without notification, returning the dropped nodes.

        Outstanding claims are invalidated by bumping the generation.
        """
        dropped = [n for n in self._items if n is not None]
        self._items = []
        self._head = 0
        self._generation += 1
        return dropped
