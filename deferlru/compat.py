"""Deprecated API kept for callers of the older ``LRUDict`` interface.

Every alias forwards to the canonical :class:`LRUCache` operation.
"""

from __future__ import annotations

import warnings
from collections.abc import Hashable
from typing import Any

from deferlru.cache import LRUCache
from deferlru.exceptions import ReentrancyError
from deferlru.types import EvictionCallback

LRUDictBusyError = ReentrancyError


def _deprecated(old: str, new: str) -> None:
    warnings.warn(
        f"{old} is deprecated; use {new} instead",
        DeprecationWarning,
        stacklevel=3,
    )


class LRUDict(LRUCache):
    """:class:`LRUCache` with the legacy method names."""

    def get(self, key: Hashable, default: Any = None) -> Any:
        # dict-style: a missing key returns None rather than raising
        return super().get(key, default)

    def has_key(self, key: Hashable) -> bool:
        _deprecated("has_key()", "the 'in' operator")
        return key in self

    def get_size(self) -> int:
        _deprecated("get_size()", "the 'size' attribute")
        return self.size

    def set_size(self, size: int) -> None:
        _deprecated("set_size()", "assignment to the 'size' attribute")
        self.size = size

    def set_callback(self, callback: EvictionCallback | None) -> None:
        _deprecated("set_callback()", "assignment to the 'callback' attribute")
        self.callback = callback

    def peek_first_item(self) -> tuple[Any, Any]:
        return self.peek_first()

    def peek_last_item(self) -> tuple[Any, Any]:
        return self.peek_last()

    @property
    def _suspend_purge(self) -> bool:
        return self.suspend_auto_purge

    @_suspend_purge.setter
    def _suspend_purge(self, value: bool) -> None:
        self.suspend_auto_purge = value

    @property
    def _detect_conflict(self) -> bool:
        return self.detect_reentrancy

    @_detect_conflict.setter
    def _detect_conflict(self, value: bool) -> None:
        self.detect_reentrancy = value

    @property
    def _purge_queue_size(self) -> int:
        return self.purge_queue_size
