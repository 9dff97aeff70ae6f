"""
Sync subsystem: dedup gate, status diff and the event consumer.
"""

from .dedup import DedupStore
from .status_diff import StatusDiffEngine, StatusTransition
from .context import SyncContext
from .engine import SyncEngine

__all__ = [
    "DedupStore",
    "StatusDiffEngine",
    "StatusTransition",
    "SyncContext",
    "SyncEngine",
]
