"""Purge engine: drains the staging queue outside the critical section.

This is the only place the eviction callback is called. A purge claims the
entries staged at the moment it starts, calls ``callback(key, value)`` for
each in FIFO order and then releases them. A purge that is entered while
another is draining balks and returns 0; the running purge finishes its own
claim and the newer entries wait for the next purge.

Each callback call runs with the reentrancy guard held, so a callback that
calls a reordering or mutating cache method gets :class:`ReentrancyError`
(unless detection is off). The entry itself is released after the guard is
left.

Callback exceptions are captured as :class:`CallbackFailure` records and
logged; they never reach the operation whose eviction triggered the purge.
Interpreter-level errors (recursion, memory, system) still propagate.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable

import structlog

from deferlru.core.guard import ReentrancyGuard
from deferlru.core.staging import StagingQueue
from deferlru.types import CallbackFailure, EvictionCallback, PurgeState, callable_name

log = structlog.get_logger(__name__)

FailureHook = Callable[[CallbackFailure], object]

# Not swallowed by the purge loop.
_FATAL_ERRORS = (RecursionError, MemoryError, SystemError)


class PurgeEngine:
    """Drains a :class:`StagingQueue`, notifying an optional callback."""

    def __init__(
        self,
        queue: StagingQueue,
        guard: ReentrancyGuard,
        failure_history: int = 32,
    ) -> None:
        self._queue = queue
        self._guard = guard
        self._state = PurgeState.IDLE
        self._failures: deque[CallbackFailure] = deque(maxlen=failure_history)
        self.suspended = False
        self.on_failure: FailureHook | None = None

    @property
    def state(self) -> PurgeState:
        return self._state

    @property
    def failures(self) -> tuple[CallbackFailure, ...]:
        return tuple(self._failures)

    def clear_failures(self) -> None:
        self._failures.clear()

    def purge(self, callback: EvictionCallback | None, force: bool = False) -> int:
        """Drain the entries staged so far; return how many were drained."""
        if not force and self.suspended:
            return 0
        if not self._queue.unclaimed:
            return 0
        if self._state is PurgeState.DRAINING or self._guard.busy:
            return 0

        window = self._queue.claim()
        generation = self._queue.generation
        self._state = PurgeState.DRAINING
        self._queue.begin()
        try:
            if callback is None:
                for position in window:
                    self._queue.take(position, generation)
            else:
                for position in window:
                    node = self._queue.take(position, generation)
                    if node is None:
                        continue
                    with self._guard:
                        failure = self._notify(callback, node.key, node.value)
                    # release outside the guard; finalizers may use the cache
                    del node
                    if failure is not None:
                        self._record(failure)
        finally:
            self._queue.end()
            self._state = PurgeState.IDLE
            self._queue.compact()

        log.debug("staging_purged", count=len(window), callback=callback is not None)
        return len(window)

    def _notify(
        self, callback: EvictionCallback, key: object, value: object
    ) -> CallbackFailure | None:
        """Call the callback once, returning a failure record instead of raising."""
        try:
            callback(key, value)
        except _FATAL_ERRORS:
            raise
        except Exception as e:
            return CallbackFailure(key=key, error=e, callback_name=callable_name(callback))
        return None

    def _record(self, failure: CallbackFailure) -> None:
        self._failures.append(failure)
        log.warning(
            "eviction_callback_failed",
            key=repr(failure.key),
            callback=failure.callback_name,
            error_type=failure.error_type,
            error=str(failure.error),
        )
        hook = self.on_failure
        if hook is None:
            return
        try:
            hook(failure)
        except _FATAL_ERRORS:
            raise
        except Exception as e:
            log.warning(
                "failure_hook_failed",
                hook=callable_name(hook),
                error_type=type(e).__name__,
                error=str(e),
            )
