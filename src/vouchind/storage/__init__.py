"""Storage components for the materialized views and run journaling.

This package provides:
- DuckDBStore: goal / activity / user_stats tables plus the sync cursor
- LiveManifest: JSONL journal of fetched block ranges
- export_views: Parquet snapshots of the three views
"""

from vouchind.storage.export import export_views
from vouchind.storage.manifest import LiveManifest
from vouchind.storage.store import DuckDBStore, DuckDBTransaction

__all__ = [
    "DuckDBStore",
    "DuckDBTransaction",
    "LiveManifest",
    "export_views",
]
