from __future__ import annotations

from .api.read import ReadAPI
from .core.config import IndexerConfig
from .core.models import Activity, Goal, SyncCursor, UserStats
from .decoding.registries import VOUCHIE_VAULT_EVENTS, make_vouchie_registry
from .storage.store import DuckDBStore

__version__ = "0.1.0"

__all__ = [
    "ReadAPI",
    "IndexerConfig",
    "Activity",
    "Goal",
    "SyncCursor",
    "UserStats",
    "VOUCHIE_VAULT_EVENTS",
    "make_vouchie_registry",
    "DuckDBStore",
]
