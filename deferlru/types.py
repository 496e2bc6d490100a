"""Shared types for the deferlru cache."""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

EvictionCallback = Callable[[Any, Any], Any]


class GuardState(str, Enum):
    """Reentrancy guard states."""

    IDLE = "idle"
    BUSY = "busy"


class PurgeState(str, Enum):
    """Purge engine states."""

    IDLE = "idle"
    DRAINING = "draining"


class CacheStats(NamedTuple):
    """Hit/miss counters, compatible with a plain ``(hits, misses)`` tuple."""

    hits: int
    misses: int


class CallbackFailure(BaseModel):
    """Record of an eviction callback that raised during a purge.

    Failures are never propagated to the operation that caused the eviction;
    they are logged and kept in a bounded history on the cache instead.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    key: Any = Field(..., description="Key of the evicted entry")
    error: Exception = Field(..., description="Exception raised by the callback")
    callback_name: str = Field(..., description="Name of the failing callback")
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp of the failure",
    )

    @property
    def error_type(self) -> str:
        """Class name of the captured exception."""
        return type(self.error).__name__


def callable_name(obj: Any) -> str:
    """Best-effort display name for a callable."""
    name = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None)
    if isinstance(name, str):
        return name
    try:
        return repr(obj)
    except Exception:
        return f"<object at {id(obj):#x}>"
