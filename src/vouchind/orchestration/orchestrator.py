"""Indexing orchestrator: fetch → decode → apply to the views.

`run_index(...)` is the application-layer use case:
- Depends ONLY on interfaces (IEvmLogsProvider, IGoalReader, IIndexStore,
  IManifestRepository).
- Does NOT instantiate RPC, DuckDBStore, LiveManifest.
- Does NOT manage lifecycle (closing clients / stores).

See `vouchind.api.index_chain` for the wiring of concrete implementations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from vouchind.core.config import IndexerConfig
from vouchind.core.interfaces import IEvmLogsProvider, IGoalReader, IIndexStore, IManifestRepository
from vouchind.core.models import ChunkRecord, SyncCursor
from vouchind.core.use_cases.index_events import IndexEventsService, IndexStats
from vouchind.decoding.registries import make_vouchie_registry
from vouchind.decoding.specs import EventRegistry
from vouchind.orchestration.source import LogEventSource, SourceStats
from vouchind.orchestration.utils import resolve_block_range

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output DTO
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class IndexRunOutput:
    """High-level output of one indexing run."""

    start_block: int
    end_block: int
    stats: IndexStats = field(default_factory=IndexStats)
    source: SourceStats = field(default_factory=SourceStats)
    cursor: SyncCursor | None = None


async def plan_block_range(
    *,
    config: IndexerConfig,
    store: IIndexStore,
    logs_provider: IEvmLogsProvider,
) -> tuple[int, int]:
    """Resolve the configured range, moving the start up to the cursor on resume."""
    start, end = await resolve_block_range(
        logs_provider,
        config.start_block,
        config.end_block,
        confirmations=config.confirmations,
    )
    if config.resume:
        cursor = store.get_cursor()
        # Restart at the cursor's block: its already-applied events replay as no-ops.
        if cursor is not None and cursor.block_number > start:
            logger.info("resuming at block %d (cursor log index %d)", cursor.block_number, cursor.log_index)
            start = cursor.block_number
    return start, end


async def run_index(
    *,
    config: IndexerConfig,
    store: IIndexStore,
    logs_provider: IEvmLogsProvider,
    goal_reader: IGoalReader | None,
    manifest_repo: IManifestRepository | None = None,
    registry: EventRegistry | None = None,
    on_chunk: Callable[[ChunkRecord], None] | None = None,
) -> IndexRunOutput:
    """Index every VouchieVault event in the configured block range.

    Events are applied one at a time in chain order. The first event that
    fails to apply stops the run with its error; everything before it stays
    committed and the store cursor points at the last applied event.
    """
    start, end = await plan_block_range(config=config, store=store, logs_provider=logs_provider)
    if start > end:
        logger.info("nothing to index: start %d is past end %d", start, end)
        return IndexRunOutput(start_block=start, end_block=end, cursor=store.get_cursor())

    source = LogEventSource(
        logs_provider,
        address=config.address,
        registry=registry if registry is not None else make_vouchie_registry(),
        step=config.step,
        concurrency=config.concurrency,
        manifest=manifest_repo,
        on_chunk=on_chunk,
    )
    service = IndexEventsService(
        store,
        goal_reader,
        missing_goal_policy=config.missing_goal_policy,
    )

    logger.info("indexing %s blocks %d-%d", config.address.lower(), start, end)
    stats = await service.apply_stream(source.iter_events(start, end))
    logger.info(
        "applied %d events (%d redelivered) from %d logs; %d filtered",
        stats.applied,
        stats.redelivered,
        source.stats.total_logs,
        source.stats.filtered,
    )

    return IndexRunOutput(
        start_block=start,
        end_block=end,
        stats=stats,
        source=source.stats,
        cursor=store.get_cursor(),
    )
