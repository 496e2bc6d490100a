"""Exceptions for the deferlru cache."""

from typing import Any


class CacheError(Exception):
    """Base exception for cache errors."""

    pass


class InvalidCapacityError(CacheError, ValueError):
    """Raised when a cache capacity is not a positive integer."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f"size must be positive, got {capacity}")


class KeyNotFoundError(CacheError, KeyError):
    """Raised when a key is absent and no default was given."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(key)


class EmptyCacheError(CacheError, KeyError):
    """Raised by peek/popitem operations on an empty cache."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}(): cache is empty")


class InvalidCallbackError(CacheError, TypeError):
    """Raised when the eviction callback is neither callable nor None."""

    pass


class ReentrancyError(CacheError, RuntimeError):
    """Raised on entry into a cache operation while another is unfinished."""

    pass


class AllocationError(CacheError, MemoryError):
    """Raised when a node cannot be allocated during insertion."""

    pass
