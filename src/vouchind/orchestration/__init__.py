"""Orchestration: the event source adapter and the indexing run.

This package provides:
- LogEventSource: chunked, ordered delivery of typed events from RPC logs
- run_index: resolve the block range and apply every event to the store
- Block-range utilities
"""

from vouchind.orchestration.orchestrator import IndexRunOutput, plan_block_range, run_index
from vouchind.orchestration.source import LogEventSource, SourceStats
from vouchind.orchestration.utils import iter_chunks, resolve_block_range

__all__ = [
    "IndexRunOutput",
    "plan_block_range",
    "run_index",
    "LogEventSource",
    "SourceStats",
    "iter_chunks",
    "resolve_block_range",
]
