"""Node arena and access-order list for the LRU cache.

Nodes live in a slot arena addressed by integer index. The key index and the
``head``/``tail`` markers hold slot indices only, so the linked list carries no
reference cycles and the arena is the sole owner of every live node.

``head`` is the most recently used node, ``tail`` the least recently used.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Any

import structlog

from deferlru.exceptions import (
    AllocationError,
    EmptyCacheError,
    InvalidCapacityError,
    KeyNotFoundError,
)

log = structlog.get_logger(__name__)

MISSING: Any = object()


class Node:
    """One cache entry plus its recency links (slot indices)."""

    __slots__ = ("key", "value", "prev", "next")

    def __init__(self, key: Hashable, value: Any) -> None:
        self.key = key
        self.value = value
        self.prev: int | None = None
        self.next: int | None = None

    def item(self) -> tuple[Any, Any]:
        return (self.key, self.value)

    def __repr__(self) -> str:
        return f"Node(key={self.key!r})"


def validate_capacity(capacity: Any) -> int:
    """Return *capacity* if it is a positive int, otherwise raise."""
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise TypeError(f"size must be an integer, got {type(capacity).__name__}")
    if capacity <= 0:
        raise InvalidCapacityError(capacity)
    return capacity


class NodeArena:
    """Bounded key -> node store with MRU-to-LRU ordering.

    Every public method leaves the index and the list consistent: each indexed
    key has exactly one linked node and ``len(index) <= capacity``. Nodes that
    leave the arena (evicted, removed or cleared) are returned to the caller,
    which decides when their key and value are released.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = validate_capacity(capacity)
        self._slots: list[Node | None] = []
        self._free: list[int] = []
        self._index: dict[Hashable, int] = {}
        self.head: int | None = None
        self.tail: int | None = None

    # ---------- size ----------

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._index

    # ---------- list primitives ----------

    def _node(self, idx: int) -> Node:
        node = self._slots[idx]
        assert node is not None, f"dangling slot {idx}"
        return node

    def _unlink(self, idx: int) -> None:
        node = self._node(idx)
        if node.prev is not None:
            self._node(node.prev).next = node.next
        else:
            self.head = node.next
        if node.next is not None:
            self._node(node.next).prev = node.prev
        else:
            self.tail = node.prev
        node.prev = node.next = None

    def _link_at_head(self, idx: int) -> None:
        node = self._node(idx)
        node.prev = None
        node.next = self.head
        if self.head is not None:
            self._node(self.head).prev = idx
        else:
            self.tail = idx
        self.head = idx

    def _touch(self, idx: int) -> None:
        if idx != self.head:
            self._unlink(idx)
            self._link_at_head(idx)

    def _allocate(self, key: Hashable, value: Any) -> int:
        try:
            node = Node(key, value)
            if self._free:
                idx = self._free.pop()
                self._slots[idx] = node
            else:
                self._slots.append(node)
                idx = len(self._slots) - 1
        except MemoryError as e:
            raise AllocationError(f"cannot allocate node for key {key!r}") from e
        return idx

    def _detach(self, idx: int) -> Node:
        """Take slot *idx* out of the index and the list, returning its node."""
        node = self._node(idx)
        self._unlink(idx)
        del self._index[node.key]
        self._slots[idx] = None
        self._free.append(idx)
        return node

    def _evict_overflow(self, limit: int) -> list[Node]:
        evicted: list[Node] = []
        while len(self._index) > limit and self.tail is not None:
            evicted.append(self._detach(self.tail))
        if evicted:
            log.debug(
                "entries_evicted",
                count=len(evicted),
                keys=[n.key for n in evicted],
                length=len(self._index),
                capacity=self._capacity,
            )
        return evicted

    # ---------- entry operations ----------

    def lookup(self, key: Hashable) -> Node | None:
        """Return the node for *key* and mark it most recently used."""
        idx = self._index.get(key)
        if idx is None:
            return None
        self._touch(idx)
        return self._node(idx)

    def peek(self, key: Hashable) -> Node | None:
        """Return the node for *key* without touching recency order."""
        idx = self._index.get(key)
        return None if idx is None else self._node(idx)

    def insert_or_replace(self, key: Hashable, value: Any) -> tuple[Any, list[Node]]:
        """Store *value* under *key* at the head of the list.

        Returns ``(old_value, evicted)``. ``old_value`` is ``MISSING`` when the
        key was new; ``evicted`` lists the nodes pushed out of the tail, LRU
        first (normally at most one).
        """
        idx = self._index.get(key)
        if idx is not None:
            node = self._node(idx)
            old, node.value = node.value, value
            self._touch(idx)
            return old, []

        idx = self._allocate(key, value)
        try:
            self._index[key] = idx
        except BaseException:
            self._slots[idx] = None
            self._free.append(idx)
            raise
        self._link_at_head(idx)
        return MISSING, self._evict_overflow(self._capacity)

    def take(self, key: Hashable) -> Node | None:
        """Detach and return the node for *key*, or ``None`` if absent."""
        idx = self._index.get(key)
        return None if idx is None else self._detach(idx)

    def remove(self, key: Hashable) -> Node:
        """Detach and return the node for *key*."""
        node = self.take(key)
        if node is None:
            raise KeyNotFoundError(key)
        return node

    def remove_head(self) -> Node:
        if self.head is None:
            raise EmptyCacheError("popitem")
        return self._detach(self.head)

    def remove_tail(self) -> Node:
        if self.tail is None:
            raise EmptyCacheError("popitem")
        return self._detach(self.tail)

    def first(self) -> Node | None:
        return None if self.head is None else self._node(self.head)

    def last(self) -> Node | None:
        return None if self.tail is None else self._node(self.tail)

    def set_capacity(self, capacity: int) -> list[Node]:
        """Resize the arena, returning the nodes evicted to fit (LRU first)."""
        capacity = validate_capacity(capacity)
        old = self._capacity
        self._capacity = capacity
        evicted = self._evict_overflow(capacity)
        log.debug("capacity_changed", old=old, new=capacity, evicted=len(evicted))
        return evicted

    def clear(self) -> list[Node]:
        """Drop every node, returning them for deferred release."""
        nodes = [n for n in self._slots if n is not None]
        self._slots = []
        self._free = []
        self._index = {}
        self.head = self.tail = None
        return nodes

    # ---------- iteration ----------

    def iter_nodes(self, from_tail: bool = False) -> Iterator[Node]:
        """Walk the list MRU -> LRU (or LRU -> MRU with ``from_tail``)."""
        idx = self.tail if from_tail else self.head
        while idx is not None:
            node = self._node(idx)
            yield node
            idx = node.prev if from_tail else node.next
