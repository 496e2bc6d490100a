"""Core data structures behind :class:`deferlru.LRUCache`."""

from deferlru.core.arena import MISSING, Node, NodeArena, validate_capacity
from deferlru.core.guard import ReentrancyGuard
from deferlru.core.purge import PurgeEngine
from deferlru.core.staging import StagingQueue

__all__ = [
    "MISSING",
    "Node",
    "NodeArena",
    "PurgeEngine",
    "ReentrancyGuard",
    "StagingQueue",
    "validate_capacity",
]
