"""Reentrancy guard for cache critical sections."""

from __future__ import annotations

from types import TracebackType

from deferlru.exceptions import ReentrancyError
from deferlru.types import GuardState


class ReentrancyGuard:
    """Busy flag marking "inside an operation that reorders or mutates".

    The cache runs on a single thread, so the only way to find the guard busy
    is a reentrant call from the same stack: a finalizer or callback calling
    back into the cache. With ``detect`` enabled that call fails with
    :class:`ReentrancyError` before touching any state; with ``detect``
    disabled it proceeds.

    Usage::

        with guard:
            ...  # mutate the arena
    """

    def __init__(self, detect: bool = True) -> None:
        self.detect = detect
        self._state = GuardState.IDLE

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is GuardState.BUSY

    def __enter__(self) -> ReentrancyGuard:
        if self.detect and self._state is GuardState.BUSY:
            raise ReentrancyError(
                "attempted entry into cache critical section while busy"
            )
        self._state = GuardState.BUSY
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._state = GuardState.IDLE
