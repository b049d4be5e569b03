"""DuckDB-backed store for the goal / activity / user_stats views.

- `DuckDBStore` owns the connection and the schema.
- `DuckDBStore.transaction()` yields a `DuckDBTransaction`: the mutation
  surface handed to event handlers. Everything done through it is committed
  together, or rolled back together if the block raises.
- Readers use `DuckDBStore.cursor()` (a separate DuckDB cursor on the same
  database), so they only ever observe committed events.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import duckdb

from vouchind.core.models import Activity, Goal, SyncCursor, UserStats, canonical_address

from . import sql_queries

logger = logging.getLogger(__name__)


def goal_from_row(row: tuple) -> Goal:
    return Goal(*row)


def activity_from_row(row: tuple) -> Activity:
    return Activity(*row)


def user_stats_from_row(row: tuple) -> UserStats:
    return UserStats(*row)


class DuckDBTransaction:
    """Writes for a single event, executed on the store's open transaction."""

    def __init__(self, con: duckdb.DuckDBPyConnection) -> None:
        self._con = con

    # ---------- goal ----------

    def get_goal(self, goal_id: int) -> Goal | None:
        row = self._con.execute(sql_queries.SELECT_GOAL, [goal_id]).fetchone()
        return goal_from_row(row) if row else None

    def upsert_goal(self, goal: Goal) -> bool:
        is_new = self._con.execute(sql_queries.SELECT_GOAL, [goal.goal_id]).fetchone() is None
        self._con.execute(
            sql_queries.UPSERT_GOAL,
            [
                goal.goal_id,
                canonical_address(goal.creator),
                goal.stake_amount,
                goal.deadline,
                goal.description,
                goal.is_solo,
                goal.created_at,
            ],
        )
        return is_new

    def mark_goal_resolved(self, goal_id: int, *, successful: bool, resolved_at: int) -> None:
        self._con.execute(sql_queries.MARK_GOAL_RESOLVED, [successful, resolved_at, goal_id])

    def update_goal_deadline(self, goal_id: int, deadline: int) -> None:
        self._con.execute(sql_queries.UPDATE_GOAL_DEADLINE, [deadline, goal_id])

    # ---------- activity ----------

    def has_activity(self, activity_id: str) -> bool:
        return self._con.execute(sql_queries.ACTIVITY_EXISTS, [activity_id]).fetchone() is not None

    def insert_activity(self, activity: Activity) -> bool:
        is_new = not self.has_activity(activity.id)
        self._con.execute(
            sql_queries.INSERT_ACTIVITY,
            [
                activity.id,
                activity.type,
                canonical_address(activity.user),
                activity.goal_id,
                activity.goal_title,
                activity.stake_amount,
                activity.deadline,
                activity.is_solo,
                activity.successful,
                activity.is_valid,
                activity.claim_amount,
                activity.timestamp,
                activity.block_number,
            ],
        )
        return is_new

    # ---------- user stats ----------

    def ensure_user_stats(self, address: str) -> UserStats:
        key = canonical_address(address)
        self._con.execute(sql_queries.ENSURE_USER_STATS, [key])
        row = self._con.execute(sql_queries.SELECT_USER_STATS, [key]).fetchone()
        return user_stats_from_row(row)

    def save_user_stats(self, stats: UserStats) -> None:
        if stats.longest_streak < stats.current_streak:
            raise ValueError(
                f"longest_streak {stats.longest_streak} < current_streak {stats.current_streak} for {stats.address}"
            )
        self._con.execute(
            sql_queries.UPDATE_USER_STATS,
            [
                stats.goals_created,
                stats.goals_completed,
                stats.goals_failed,
                stats.total_staked,
                stats.total_saved,
                stats.total_lost,
                stats.current_streak,
                stats.longest_streak,
                stats.last_goal_at,
                canonical_address(stats.address),
            ],
        )

    # ---------- cursor ----------

    def advance_cursor(self, block_number: int, log_index: int) -> None:
        row = self._con.execute(sql_queries.SELECT_CURSOR).fetchone()
        if row is not None and (block_number, log_index) <= (row[0], row[1]):
            return
        self._con.execute(sql_queries.UPSERT_CURSOR, [block_number, log_index, time.time()])


class DuckDBStore:
    """Materialized views persisted in one DuckDB database.

    Parameters
    ----------
    path : str | Path
        Database file, or ":memory:" for an ephemeral store (tests).
    threads : int | None
        Optional DuckDB thread limit.
    """

    def __init__(self, path: str | Path = ":memory:", *, threads: int | None = None) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.con = duckdb.connect(self.path)
        if threads:
            self.con.execute(f"PRAGMA threads={int(threads)}")
        for stmt in sql_queries.SCHEMA:
            self.con.execute(stmt)

    @contextmanager
    def transaction(self) -> Iterator[DuckDBTransaction]:
        """Run one event's writes atomically."""
        self.con.begin()
        try:
            yield DuckDBTransaction(self.con)
        except BaseException:
            self.con.rollback()
            logger.debug("transaction rolled back")
            raise
        # A failed COMMIT is rolled back by DuckDB itself.
        self.con.commit()

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """Return a read cursor; it sees committed state only."""
        return self.con.cursor()

    def get_cursor(self) -> SyncCursor | None:
        with self.cursor() as cur:
            row = cur.execute(sql_queries.SELECT_CURSOR).fetchone()
        return SyncCursor(*row) if row else None

    def close(self) -> None:
        self.con.close()

    def __enter__(self) -> DuckDBStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
