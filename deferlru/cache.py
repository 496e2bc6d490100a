"""Bounded LRU cache with deferred eviction callbacks.

An :class:`LRUCache` behaves like a ``dict`` holding at most ``size`` entries.
Once a new key pushes the length past ``size``, the least-recently used entry
is evicted. Evicted entries are not released (and the callback is not called)
inside the operation that evicted them: they are staged and drained by a purge
that runs after the operation has left its critical section.

Example::

    >>> cache = LRUCache(3, callback=print)
    >>> for key in "ABCDE":
    ...     cache[key] = key.lower()
    A a
    B b
    >>> cache.keys()
    ['E', 'D', 'C']
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping
from itertools import islice
from typing import Any

import structlog

from deferlru.config.settings import CacheSettings, get_settings
from deferlru.core.arena import MISSING, Node, NodeArena
from deferlru.core.guard import ReentrancyGuard
from deferlru.core.purge import FailureHook, PurgeEngine
from deferlru.core.staging import StagingQueue
from deferlru.exceptions import EmptyCacheError, InvalidCallbackError, KeyNotFoundError
from deferlru.types import CacheStats, CallbackFailure, EvictionCallback, callable_name

log = structlog.get_logger(__name__)

# hits/misses behave as unsigned 64-bit counters
_COUNTER_MASK = (1 << 64) - 1


def _check_callback(callback: Any) -> EvictionCallback | None:
    if callback is not None and not callable(callback):
        raise InvalidCallbackError(
            f"callback object must be callable, got {type(callback).__name__}"
        )
    return callback


def _iter_pairs(
    other: Mapping[Any, Any] | Iterable[tuple[Any, Any]],
    overrides: dict[str, Any],
) -> Iterator[tuple[Any, Any]]:
    """Yield (key, value) pairs in ``dict.update`` order."""
    if hasattr(other, "keys"):
        for key in other.keys():
            yield key, other[key]
    else:
        for pair in other:
            key, value = pair
            yield key, value
    yield from overrides.items()


class LRUCache:
    """Fixed-capacity mapping with least-recently-used eviction.

    Args:
        size: Maximum number of entries; must be a positive int.
        callback: Optional ``callback(key, value)`` called once per evicted
            entry, in eviction order, after the evicting operation returns.
        settings: Flag defaults and batch size; ``get_settings()`` if omitted.
    """

    def __init__(
        self,
        size: int,
        callback: EvictionCallback | None = None,
        *,
        settings: CacheSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._arena = NodeArena(size)
        self._callback = _check_callback(callback)
        self._guard = ReentrancyGuard(detect=settings.detect_reentrancy)
        self._queue = StagingQueue()
        self._purger = PurgeEngine(
            self._queue, self._guard, failure_history=settings.failure_history
        )
        self._purger.suspended = settings.suspend_auto_purge
        self._batch_size = settings.update_batch_size
        self._hits = 0
        self._misses = 0

    # ---------- internals ----------

    def _hit(self) -> None:
        self._hits = (self._hits + 1) & _COUNTER_MASK

    def _miss(self) -> None:
        self._misses = (self._misses + 1) & _COUNTER_MASK

    def _stage(self, evicted: list[Node]) -> None:
        if evicted:
            self._queue.extend(evicted)

    def _auto_purge(self) -> int:
        return self._purger.purge(self._callback, force=False)

    # ---------- lookup ----------

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        """Return the value for *key*, marking it most recently used.

        Without *default* a missing key raises :class:`KeyNotFoundError`; with
        it, *default* is returned and nothing is inserted. Either way a miss
        is counted.
        """
        return self._get(key, default)

    def _get(self, key: Hashable, default: Any) -> Any:
        with self._guard:
            node = self._arena.lookup(key)
            if node is None:
                self._miss()
            else:
                self._hit()
                value = node.value
        if node is None:
            if default is MISSING:
                raise KeyNotFoundError(key)
            return default
        return value

    def __getitem__(self, key: Hashable) -> Any:
        return self._get(key, MISSING)

    def contains(self, key: Hashable) -> bool:
        """Membership test; does not reorder or count."""
        return key in self._arena

    def __contains__(self, key: Hashable) -> bool:
        return key in self._arena

    def __len__(self) -> int:
        return len(self._arena)

    def peek_first(self) -> tuple[Any, Any]:
        """Return the MRU ``(key, value)`` without reordering."""
        node = self._arena.first()
        if node is None:
            raise EmptyCacheError("peek_first")
        return node.item()

    def peek_last(self) -> tuple[Any, Any]:
        """Return the LRU ``(key, value)`` without reordering."""
        node = self._arena.last()
        if node is None:
            raise EmptyCacheError("peek_last")
        return node.item()

    # ---------- mutation ----------

    def set(self, key: Hashable, value: Any) -> None:
        """Insert or replace *key*; may evict the LRU entry."""
        with self._guard:
            old, evicted = self._arena.insert_or_replace(key, value)
            self._stage(evicted)
        # the superseded value is released here, outside the guard
        del old, evicted
        self._auto_purge()

    def __setitem__(self, key: Hashable, value: Any) -> None:
        self.set(key, value)

    def delete(self, key: Hashable) -> Any:
        """Remove *key* and return its value."""
        with self._guard:
            node = self._arena.remove(key)
        return node.value

    def __delitem__(self, key: Hashable) -> None:
        self.delete(key)

    def pop(self, key: Hashable, default: Any = MISSING) -> Any:
        """Remove *key* and return its value, or *default* if absent."""
        with self._guard:
            node = self._arena.take(key)
            if node is None:
                self._miss()
            else:
                self._hit()
        if node is None:
            if default is MISSING:
                raise KeyNotFoundError(key)
            return default
        return node.value

    def popitem(self, least_recent: bool = False) -> tuple[Any, Any]:
        """Remove and return the MRU pair, or the LRU pair if *least_recent*."""
        with self._guard:
            if least_recent:
                node = self._arena.remove_tail()
            else:
                node = self._arena.remove_head()
        return node.item()

    def setdefault(self, key: Hashable, default: Any = None) -> Any:
        """Return the value for *key*, inserting *default* if it is absent.

        A present key counts as a hit; inserting the default is not a miss.
        """
        evicted: list[Node] = []
        with self._guard:
            node = self._arena.lookup(key)
            if node is not None:
                self._hit()
                value = node.value
            else:
                _, evicted = self._arena.insert_or_replace(key, default)
                self._stage(evicted)
                value = default
        del evicted
        self._auto_purge()
        return value

    def update(
        self,
        other: Mapping[Any, Any] | Iterable[tuple[Any, Any]] = (),
        /,
        **overrides: Any,
    ) -> None:
        """Insert every pair of *other*, then *overrides*, in order.

        Pairs are applied in batches of ``update_batch_size``. Each batch is
        read from *other* before the guard is taken, so the source may itself
        read this cache (``cache.update(cache)`` works). A batch holds the
        guard once and buffers the values it supersedes; the buffer is
        released and a purge runs after the guard is left, so memory held back
        is bounded by the batch size rather than the size of *other*.
        """
        pairs = _iter_pairs(other, overrides)
        superseded: list[Any] = []
        full = True
        while full:
            batch = list(islice(pairs, self._batch_size))
            if not batch:
                break
            full = len(batch) == self._batch_size
            with self._guard:
                for key, value in batch:
                    old, evicted = self._arena.insert_or_replace(key, value)
                    self._stage(evicted)
                    if old is not MISSING:
                        superseded.append(old)
            # drop the loop's last references before releasing and purging
            batch = old = evicted = value = None
            superseded.clear()
            self._auto_purge()

    def clear(self) -> None:
        """Drop all entries and reset the counters.

        The callback is not called for cleared entries; already staged
        evictions are left for the next purge.
        """
        with self._guard:
            nodes = self._arena.clear()
            self._hits = 0
            self._misses = 0
        nodes.clear()

    def close(self) -> None:
        """Clear the cache and drop staged evictions without notification.

        A purge draining at the time skips whatever it had not reached yet.
        """
        self.clear()
        with self._guard:
            dropped = self._queue.discard()
        if dropped:
            log.debug("staging_discarded", count=len(dropped))
        dropped.clear()

    # ---------- snapshots ----------

    def keys(self) -> list[Any]:
        """Keys in MRU -> LRU order."""
        return [n.key for n in self._arena.iter_nodes()]

    def values(self) -> list[Any]:
        """Values in MRU -> LRU order."""
        return [n.value for n in self._arena.iter_nodes()]

    def items(self) -> list[tuple[Any, Any]]:
        """``(key, value)`` pairs in MRU -> LRU order."""
        return [n.item() for n in self._arena.iter_nodes()]

    def to_dict(self) -> dict[Any, Any]:
        """Plain ``dict`` copy, iterating MRU -> LRU."""
        return {n.key: n.value for n in self._arena.iter_nodes()}

    def __iter__(self) -> Iterator[Any]:
        return iter(self.keys())

    # ---------- capacity, stats, purging ----------

    @property
    def size(self) -> int:
        """Capacity. Shrinking below the current length evicts LRU entries."""
        return self._arena.capacity

    @size.setter
    def size(self, value: int) -> None:
        with self._guard:
            evicted = self._arena.set_capacity(value)
            self._stage(evicted)
        del evicted
        self._auto_purge()

    def get_stats(self) -> CacheStats:
        """Return ``(hits, misses)``."""
        return CacheStats(self._hits, self._misses)

    def purge(self) -> int:
        """Drain staged evictions now, even if auto-purge is suspended."""
        return self._purger.purge(self._callback, force=True)

    @property
    def purge_queue_size(self) -> int:
        """Number of evicted entries still held by the staging queue."""
        return len(self._queue)

    @property
    def callback(self) -> EvictionCallback | None:
        return self._callback

    @callback.setter
    def callback(self, value: EvictionCallback | None) -> None:
        value = _check_callback(value)
        with self._guard:
            old, self._callback = self._callback, value
        del old

    @property
    def on_failure(self) -> FailureHook | None:
        """Optional hook called with each :class:`CallbackFailure`."""
        return self._purger.on_failure

    @on_failure.setter
    def on_failure(self, hook: FailureHook | None) -> None:
        if hook is not None and not callable(hook):
            raise InvalidCallbackError("on_failure hook must be callable")
        self._purger.on_failure = hook

    @property
    def callback_failures(self) -> tuple[CallbackFailure, ...]:
        """Recent eviction-callback failures, oldest first."""
        return self._purger.failures

    @property
    def suspend_auto_purge(self) -> bool:
        return self._purger.suspended

    @suspend_auto_purge.setter
    def suspend_auto_purge(self, value: bool) -> None:
        self._purger.suspended = bool(value)

    @property
    def detect_reentrancy(self) -> bool:
        return self._guard.detect

    @detect_reentrancy.setter
    def detect_reentrancy(self, value: bool) -> None:
        self._guard.detect = bool(value)

    def __repr__(self) -> str:
        cb = "" if self._callback is None else f", callback={callable_name(self._callback)}"
        return f"<{type(self).__name__}({self.size}{cb}) with {len(self)} entries>"
