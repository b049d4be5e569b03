from __future__ import annotations

from contextlib import AbstractContextManager
from typing import List, Protocol, runtime_checkable

from vouchind.core.events import GoalRecord
from vouchind.core.models import Activity, ChunkRecord, EventLog, Goal, SyncCursor, UserStats


# ---------------------------------------------------------------------------
# IEvmLogsProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IEvmLogsProvider(Protocol):
    """
    Abstract provider for fetching EVM logs.

    Domain expectations:
    - It returns EventLog objects already mapped into internal domain models.
    - It hides the underlying RPC / archive technology.
    """

    async def get_logs(
        self,
        *,
        address: str,
        topic0s: list[str],
        from_block: int,
        to_block: int,
    ) -> List[EventLog]:
        """Return all logs for (address, topic0s) over the inclusive block range."""
        ...

    async def latest_block(self) -> int:
        """Return the current chain head height."""
        ...

    async def block_timestamp(self, block_number: int) -> int:
        """Return the unix timestamp of a block (for logs that omit it)."""
        ...


# ---------------------------------------------------------------------------
# IGoalReader
# ---------------------------------------------------------------------------

@runtime_checkable
class IGoalReader(Protocol):
    """
    Read access to the contract's current goal state.

    Only used for data the events do not carry (the goal description).
    Failures are expected and absorbed by the caller.
    """

    async def read_goal(self, goal_id: int) -> GoalRecord:
        ...


# ---------------------------------------------------------------------------
# IManifestRepository
# ---------------------------------------------------------------------------

@runtime_checkable
class IManifestRepository(Protocol):
    """Append-only journal of fetched block ranges (started/done/failed)."""

    async def append(self, record: ChunkRecord) -> None:
        ...


# ---------------------------------------------------------------------------
# IStoreTransaction / IIndexStore
# ---------------------------------------------------------------------------

@runtime_checkable
class IStoreTransaction(Protocol):
    """
    Mutation surface handed to event handlers.

    Every call made through one transaction object is committed together or
    not at all.
    """

    def get_goal(self, goal_id: int) -> Goal | None:
        ...

    def upsert_goal(self, goal: Goal) -> bool:
        """Insert or refresh a goal's creation fields. Returns True if the row is new.

        Lifecycle fields (resolved / successful / resolved_at) of an existing
        row are left untouched.
        """
        ...

    def mark_goal_resolved(self, goal_id: int, *, successful: bool, resolved_at: int) -> None:
        ...

    def update_goal_deadline(self, goal_id: int, deadline: int) -> None:
        ...

    def has_activity(self, activity_id: str) -> bool:
        ...

    def insert_activity(self, activity: Activity) -> bool:
        """Insert-if-absent by activity id. Returns True if the row is new."""
        ...

    def ensure_user_stats(self, address: str) -> UserStats:
        """Atomically create the zero row if absent, then return the current row."""
        ...

    def save_user_stats(self, stats: UserStats) -> None:
        ...

    def advance_cursor(self, block_number: int, log_index: int) -> None:
        """Move the sync cursor forward (never backwards)."""
        ...


@runtime_checkable
class IIndexStore(Protocol):
    """Persistence for the goal / activity / user_stats views."""

    def transaction(self) -> AbstractContextManager[IStoreTransaction]:
        ...

    def get_cursor(self) -> SyncCursor | None:
        ...
