"""Core data models, configuration, typed events and errors.

This package provides:
- View rows (Goal, Activity, UserStats) and RPC/manifest records
- Typed contract events (GoalCreated, GoalResolved, ...) and GoalRecord
- Configuration (IndexerConfig)
- The error taxonomy (VouchindError and subclasses)
"""

from vouchind.core.config import IndexerConfig
from vouchind.core.errors import (
    EventProcessingError,
    MissingGoalError,
    RPCError,
    UnknownEventError,
    VouchindError,
)
from vouchind.core.events import GoalRecord, IndexedEvent
from vouchind.core.models import Activity, ChunkRecord, EventLog, Goal, Meta, SyncCursor, UserStats

__all__ = [
    "IndexerConfig",
    "EventProcessingError",
    "MissingGoalError",
    "RPCError",
    "UnknownEventError",
    "VouchindError",
    "GoalRecord",
    "IndexedEvent",
    "Activity",
    "ChunkRecord",
    "EventLog",
    "Goal",
    "Meta",
    "SyncCursor",
    "UserStats",
]
