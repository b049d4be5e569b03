from __future__ import annotations

import time
from collections.abc import Callable

from vouchind.clients.rpc import RPC
from vouchind.clients.vault import VouchieVaultReader
from vouchind.core.config import IndexerConfig
from vouchind.core.models import ChunkRecord
from vouchind.orchestration.orchestrator import IndexRunOutput, run_index
from vouchind.storage.manifest import LiveManifest
from vouchind.storage.store import DuckDBStore

# ---------------------------------------------------------------------------
# Setup helpers (filesystem / network, application layer)
# ---------------------------------------------------------------------------


def run_basename(config: IndexerConfig) -> str:
    """Manifest file name for one run."""
    return (
        f"run_{time.strftime('%Y%m%d_%H%M%S', time.gmtime())}_"
        f"{config.address.lower()}_{config.start_block}_{config.end_block}.jsonl"
    )


def _setup(config: IndexerConfig) -> tuple[RPC, VouchieVaultReader, LiveManifest]:
    rpc = RPC(
        config.rpc_url,
        timeout_s=config.timeout_s,
        max_connections=max(32, 2 * config.concurrency),
    )
    reader = VouchieVaultReader(rpc, config.address)
    manifest = LiveManifest(config.manifests_dir / run_basename(config))
    return rpc, reader, manifest


async def index_chain(
    *,
    config: IndexerConfig,
    store: DuckDBStore | None = None,
    on_chunk: Callable[[ChunkRecord], None] | None = None,
) -> IndexRunOutput:
    """
    High-level convenience API for scripts and the CLI.

    Opens (and closes) the RPC client; opens the DuckDB store at
    `config.db_path` unless one is passed in, in which case the caller keeps
    ownership of it.
    """
    rpc, reader, manifest = _setup(config)
    own_store = store is None
    db = DuckDBStore(config.db_path) if store is None else store
    try:
        return await run_index(
            config=config,
            store=db,
            logs_provider=rpc,
            goal_reader=reader,
            manifest_repo=manifest,
            on_chunk=on_chunk,
        )
    finally:
        await rpc.aclose()
        if own_store:
            db.close()
