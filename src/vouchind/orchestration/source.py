"""Event source adapter: RPC logs → ordered, typed `IndexedEvent`s.

Chunks are fetched up to `concurrency` at a time, but events leave this
adapter one by one in (block number, log index) order, and a chunk's events
are only delivered once every earlier chunk has been fully delivered.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass

from vouchind.core.events import IndexedEvent
from vouchind.core.interfaces import IEvmLogsProvider, IManifestRepository
from vouchind.core.models import ChunkRecord, EventLog
from vouchind.decoding.decoder import decode_log
from vouchind.decoding.specs import EventRegistry, get_event_registry_topic0s
from vouchind.decoding.typed import to_indexed_event
from vouchind.orchestration.utils import iter_chunks

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class SourceStats:
    """Counters for the fetch / decode side of a run."""

    chunks_done: int = 0
    retries: int = 0
    total_logs: int = 0
    decoded: int = 0
    filtered: int = 0


# ---------------------------------------------------------------------------
# Chunk record helpers
# ---------------------------------------------------------------------------


def _started_record(a: int, b: int, attempts: int) -> ChunkRecord:
    return ChunkRecord(
        from_block=a,
        to_block=b,
        status="started",
        attempts=attempts,
        error=None,
        logs=0,
        decoded=0,
        updated_at=time.time(),
    )


def _done_record(a: int, b: int, attempts: int, logs: int, decoded: int, filtered: int) -> ChunkRecord:
    return ChunkRecord(
        from_block=a,
        to_block=b,
        status="done",
        attempts=attempts,
        error=None,
        logs=logs,
        decoded=decoded,
        updated_at=time.time(),
        filtered=filtered,
    )


def _failed_record(a: int, b: int, attempts: int, error: str) -> ChunkRecord:
    return ChunkRecord(
        from_block=a,
        to_block=b,
        status="failed",
        attempts=attempts,
        error=error,
        logs=0,
        decoded=0,
        updated_at=time.time(),
    )


# ---------------------------------------------------------------------------
# LogEventSource
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _FetchedChunk:
    start: int
    end: int
    attempts: int
    logs: list[EventLog]


class LogEventSource:
    """
    Deliver VouchieVault events from an `IEvmLogsProvider`.

    Parameters
    ----------
    logs_provider : IEvmLogsProvider
        Where logs (and missing block timestamps) come from.
    address : str
        Vault contract address.
    registry : EventRegistry
        Specs of the events to fetch and decode.
    manifest : IManifestRepository | None
        Optional journal receiving started/done/failed chunk records.
    on_chunk : Callable[[ChunkRecord], None] | None
        Called with each chunk's "done" record (progress reporting).
    """

    def __init__(
        self,
        logs_provider: IEvmLogsProvider,
        *,
        address: str,
        registry: EventRegistry,
        step: int = 2_000,
        concurrency: int = 8,
        manifest: IManifestRepository | None = None,
        max_attempts: int = 3,
        retry_delay_s: float = 0.8,
        on_chunk: Callable[[ChunkRecord], None] | None = None,
    ) -> None:
        self._provider = logs_provider
        self._address = address.lower()
        self._registry = registry
        self._topic0s = get_event_registry_topic0s(registry)
        self._step = step
        self._concurrency = max(1, concurrency)
        self._manifest = manifest
        self._max_attempts = max_attempts
        self._retry_delay_s = retry_delay_s
        self._on_chunk = on_chunk
        self.stats = SourceStats()

    async def _journal(self, record: ChunkRecord) -> None:
        if self._manifest is not None:
            await self._manifest.append(record)

    async def _fetch_chunk(self, a: int, b: int) -> _FetchedChunk:
        """Fetch one range, retrying with a linear backoff."""
        tries = 0
        while True:
            tries += 1
            await self._journal(_started_record(a, b, tries))
            try:
                logs = await self._provider.get_logs(
                    address=self._address,
                    topic0s=self._topic0s,
                    from_block=a,
                    to_block=b,
                )
                return _FetchedChunk(start=a, end=b, attempts=tries, logs=logs)
            except Exception as e:
                err = f"{type(e).__name__}: {e}"
                await self._journal(_failed_record(a, b, tries, err))
                if tries >= self._max_attempts:
                    logger.error("giving up on blocks %d-%d after %d attempts: %s", a, b, tries, err)
                    raise
                self.stats.retries += 1
                logger.warning("blocks %d-%d failed (attempt %d): %s; retrying", a, b, tries, err)
                await asyncio.sleep(self._retry_delay_s * tries)

    async def _decode_chunk(self, chunk: _FetchedChunk) -> tuple[list[IndexedEvent], int]:
        """Decode a chunk's logs into ordered typed events; returns (events, filtered)."""
        events: list[IndexedEvent] = []
        filtered = 0
        for log in sorted(chunk.logs, key=lambda lg: (lg.block_number, lg.log_index)):
            parsed = decode_log(log, self._registry)
            if parsed is None:
                filtered += 1
                continue
            ts = log.block_timestamp
            if ts is None:
                ts = await self._provider.block_timestamp(log.block_number)
            event = to_indexed_event(parsed, block_timestamp=ts)
            if event is None:
                filtered += 1
                continue
            events.append(event)
        return events, filtered

    async def iter_events(self, start: int, end: int) -> AsyncIterator[IndexedEvent]:
        """Yield every event in [start, end], strictly ordered."""
        chunks = list(iter_chunks(start, end, self._step))
        for i in range(0, len(chunks), self._concurrency):
            window = chunks[i : i + self._concurrency]
            tasks = [asyncio.create_task(self._fetch_chunk(a, b)) for a, b in window]
            try:
                fetched = await asyncio.gather(*tasks)
            except BaseException:
                # One chunk gave up: stop its siblings before the run unwinds.
                for t in tasks:
                    t.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

            for chunk in fetched:
                events, filtered = await self._decode_chunk(chunk)
                self.stats.total_logs += len(chunk.logs)
                self.stats.filtered += filtered
                logger.debug(
                    "blocks %d-%d: %d logs, %d events, %d filtered",
                    chunk.start,
                    chunk.end,
                    len(chunk.logs),
                    len(events),
                    filtered,
                )

                for event in events:
                    yield event
                    self.stats.decoded += 1

                # Reached only after the consumer applied every event above.
                done = _done_record(
                    chunk.start, chunk.end, chunk.attempts, len(chunk.logs), len(events), filtered
                )
                await self._journal(done)
                self.stats.chunks_done += 1
                if self._on_chunk is not None:
                    self._on_chunk(done)
