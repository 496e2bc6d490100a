"""deferlru: bounded LRU cache with deferred, reentrancy-safe eviction callbacks."""

from deferlru.cache import LRUCache
from deferlru.compat import LRUDict, LRUDictBusyError
from deferlru.exceptions import (
    AllocationError,
    CacheError,
    EmptyCacheError,
    InvalidCallbackError,
    InvalidCapacityError,
    KeyNotFoundError,
    ReentrancyError,
)
from deferlru.types import CacheStats, CallbackFailure

__version__ = "0.1.0"

__all__ = [
    "AllocationError",
    "CacheError",
    "CacheStats",
    "CallbackFailure",
    "EmptyCacheError",
    "InvalidCallbackError",
    "InvalidCapacityError",
    "KeyNotFoundError",
    "LRUCache",
    "LRUDict",
    "LRUDictBusyError",
    "ReentrancyError",
    "__version__",
]
