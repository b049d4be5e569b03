"""UserStats arithmetic, including the streak state machine.

All functions are pure: they take the current row and return the next one.

Streak rules
------------
- The state is the current streak length.
- A successful resolution adds 1; a failed resolution resets it to 0.
- `longest_streak` is a running maximum, updated in the same step as
  `current_streak` and never on its own.
- Cancellation is a withdrawal, not a failure: it never touches the streak,
  `goals_failed` or `total_lost`.
"""

from __future__ import annotations

from dataclasses import replace

from vouchind.core.models import UserStats


def record_goal_created(stats: UserStats, *, stake_amount: int, created_at: int) -> UserStats:
    """Count a new goal and its stake."""
    return replace(
        stats,
        goals_created=stats.goals_created + 1,
        total_staked=stats.total_staked + stake_amount,
        last_goal_at=created_at,
    )


def record_goal_resolved(stats: UserStats, *, successful: bool, stake_amount: int) -> UserStats:
    """Apply one resolution outcome for the goal's creator."""
    if successful:
        streak = stats.current_streak + 1
        return replace(
            stats,
            goals_completed=stats.goals_completed + 1,
            total_saved=stats.total_saved + stake_amount,
            current_streak=streak,
            longest_streak=max(stats.longest_streak, streak),
        )
    return replace(
        stats,
        goals_failed=stats.goals_failed + 1,
        total_lost=stats.total_lost + stake_amount,
        current_streak=0,
    )


def record_goal_canceled(stats: UserStats, *, refund_amount: int) -> UserStats:
    """Reverse a creation-time increment; both fields are floored at 0."""
    return replace(
        stats,
        goals_created=max(0, stats.goals_created - 1),
        total_staked=max(0, stats.total_staked - refund_amount),
    )
