"""
read.py
-------

Read API over the materialized views, consumed by the UI layer.

Each call opens its own DuckDB cursor, so reads never see a half-applied
event and never block the indexer's write transaction. Results are plain
model dataclasses; nothing here mutates the store.
"""

from __future__ import annotations

from typing import Literal

from vouchind.core.models import ACTIVITY_TYPES, Activity, Goal, SyncCursor, UserStats, canonical_address
from vouchind.storage import sql_queries
from vouchind.storage.store import DuckDBStore, activity_from_row, goal_from_row, user_stats_from_row

MAX_LIMIT = 1_000

LeaderboardSort = Literal["streak", "saved"]

_LEADERBOARD_QUERIES = {
    "streak": sql_queries.LEADERBOARD_BY_STREAK,
    "saved": sql_queries.LEADERBOARD_BY_SAVED,
}


def _clamp_limit(limit: int) -> int:
    return max(1, min(int(limit), MAX_LIMIT))


class ReadAPI:
    """Query surface: activity feed, user stats, leaderboard, goals."""

    def __init__(self, store: DuckDBStore) -> None:
        self._store = store

    def _fetchall(self, query: str, params: list) -> list[tuple]:
        with self._store.cursor() as cur:
            return cur.execute(query, params).fetchall()

    def _fetchone(self, query: str, params: list) -> tuple | None:
        with self._store.cursor() as cur:
            return cur.execute(query, params).fetchone()

    # ---------- activity feed ----------

    def list_activities(
        self,
        limit: int = 20,
        *,
        offset: int = 0,
        activity_type: str | None = None,
    ) -> list[Activity]:
        """Newest first (timestamp desc, then block number, then id)."""
        limit, offset = _clamp_limit(limit), max(0, int(offset))
        if activity_type is None:
            rows = self._fetchall(sql_queries.LIST_ACTIVITIES, [limit, offset])
        else:
            if activity_type not in ACTIVITY_TYPES:
                raise ValueError(f"unknown activity type {activity_type!r}")
            rows = self._fetchall(sql_queries.LIST_ACTIVITIES_BY_TYPE, [activity_type, limit, offset])
        return [activity_from_row(r) for r in rows]

    def list_activities_by_user(self, address: str, limit: int = 20) -> list[Activity]:
        rows = self._fetchall(
            sql_queries.LIST_ACTIVITIES_BY_USER, [canonical_address(address), _clamp_limit(limit)]
        )
        return [activity_from_row(r) for r in rows]

    # ---------- user stats ----------

    def get_user_stats(self, address: str) -> UserStats | None:
        row = self._fetchone(sql_queries.SELECT_USER_STATS, [canonical_address(address)])
        return user_stats_from_row(row) if row else None

    def list_leaderboard(self, sort_by: LeaderboardSort = "streak", limit: int = 10) -> list[UserStats]:
        """Descending by current streak or total saved; ties by address."""
        query = _LEADERBOARD_QUERIES.get(sort_by)
        if query is None:
            raise ValueError(f"sort_by must be 'streak' or 'saved', got {sort_by!r}")
        return [user_stats_from_row(r) for r in self._fetchall(query, [_clamp_limit(limit)])]

    # ---------- goals ----------

    def get_goal(self, goal_id: int) -> Goal | None:
        row = self._fetchone(sql_queries.SELECT_GOAL, [goal_id])
        return goal_from_row(row) if row else None

    def list_goals_by_creator(self, address: str, limit: int = 50) -> list[Goal]:
        rows = self._fetchall(
            sql_queries.LIST_GOALS_BY_CREATOR, [canonical_address(address), _clamp_limit(limit)]
        )
        return [goal_from_row(r) for r in rows]

    # ---------- sync ----------

    def get_cursor(self) -> SyncCursor | None:
        return self._store.get_cursor()
