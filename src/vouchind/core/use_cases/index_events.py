from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import AsyncIterable, Iterable
from dataclasses import dataclass, field

from vouchind.core.config import MissingGoalPolicy
from vouchind.core.errors import EventProcessingError, UnknownEventError, VouchindError
from vouchind.core.events import GoalCreated, IndexedEvent
from vouchind.core.interfaces import IGoalReader, IIndexStore
from vouchind.core.use_cases.handlers import HANDLERS, HandlerContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class IndexStats:
    """
    Counters for one indexing pass.

    - applied: events whose mutations were committed
    - redelivered: subset of `applied` whose activity row already existed
    - description_misses: GoalCreated events indexed with an empty description
    """

    applied: int = 0
    redelivered: int = 0
    description_misses: int = 0
    by_type: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    last_position: tuple[int, int] | None = None


# ---------------------------------------------------------------------------
# Domain service – IndexEventsService
# ---------------------------------------------------------------------------


class IndexEventsService:
    """
    Route events to their handler and apply each one atomically.

    Events are applied one at a time, in the order they are given. Each event
    runs inside its own store transaction; if anything raises, none of that
    event's writes (nor the cursor move) are committed and the error is
    propagated so the source can redeliver it later.
    """

    def __init__(
        self,
        store: IIndexStore,
        goal_reader: IGoalReader | None = None,
        *,
        missing_goal_policy: MissingGoalPolicy = "degrade",
    ) -> None:
        self._store = store
        self._goal_reader = goal_reader
        self._missing_goal_policy = missing_goal_policy

    async def _lookup_description(self, goal_id: int) -> str | None:
        """Fetch the description from contract state; None when unavailable."""
        if self._goal_reader is None:
            return None
        try:
            record = await self._goal_reader.read_goal(goal_id)
        except Exception as e:
            # Display-only field: degrade to empty rather than failing the event.
            logger.warning("description lookup failed for goal %d: %s: %s", goal_id, type(e).__name__, e)
            return None
        return record.description

    async def apply(self, event: IndexedEvent, stats: IndexStats | None = None) -> bool:
        """
        Apply one event.

        Returns
        -------
        bool
            True on first delivery, False if the activity row already existed.
        """
        handler = HANDLERS.get(event.event_type)
        if handler is None:
            raise UnknownEventError(f"no handler for event type {event.event_type!r}")

        description: str | None = None
        if isinstance(event.args, GoalCreated):
            description = await self._lookup_description(event.args.goal_id)
            if description is None and stats is not None:
                stats.description_misses += 1

        try:
            with self._store.transaction() as tx:
                redelivered = tx.has_activity(event.activity_id)
                ctx = HandlerContext(
                    tx=tx,
                    redelivered=redelivered,
                    description=description,
                    missing_goal_policy=self._missing_goal_policy,
                )
                handler(event, ctx)
                tx.advance_cursor(event.block_number, event.log_index)
        except VouchindError:
            raise
        except Exception as e:
            logger.error("rolled back %s at %s: %s", event.event_type, event.activity_id, e)
            raise EventProcessingError(event.activity_id, e) from e

        if redelivered:
            logger.debug("redelivery of %s at %s", event.event_type, event.activity_id)
        if stats is not None:
            stats.applied += 1
            stats.redelivered += int(redelivered)
            stats.by_type[event.event_type] += 1
            stats.last_position = event.position
        return not redelivered

    async def apply_many(self, events: Iterable[IndexedEvent]) -> IndexStats:
        """Apply events strictly in iteration order; stop at the first failure."""
        stats = IndexStats()
        for event in events:
            await self.apply(event, stats)
        return stats

    async def apply_stream(self, events: AsyncIterable[IndexedEvent]) -> IndexStats:
        """Same as `apply_many` for an async event source."""
        stats = IndexStats()
        async for event in events:
            await self.apply(event, stats)
        return stats
