"""One handler per VouchieVault event.

Handlers are synchronous functions of (event, context) that mutate the store
through `context.tx`. They never touch the network: any contract read an
event needs is done by the caller before the transaction opens and handed
over through the context.

Aggregate guards
----------------
UserStats mutations are skipped when
- the event's activity row already existed (exact redelivery), or
- the Goal transition they depend on already happened (a re-org can replay
  the same logical event under a different transaction hash / log index).
Goal and Activity writes are idempotent upserts and are always re-applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from vouchind.core.aggregates import record_goal_canceled, record_goal_created, record_goal_resolved
from vouchind.core.config import MissingGoalPolicy
from vouchind.core.errors import MissingGoalError
from vouchind.core.events import (
    BadgeClaimed,
    FundsClaimed,
    GoalCanceled,
    GoalCreated,
    GoalResolved,
    IndexedEvent,
    StreakFrozen,
    VoteCast,
)
from vouchind.core.interfaces import IStoreTransaction
from vouchind.core.models import ZERO_ADDRESS, Activity, ActivityType, Goal

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HandlerContext:
    """Everything a handler may use while applying one event."""

    tx: IStoreTransaction
    redelivered: bool = False
    description: str | None = None  # prefetched for GoalCreated
    missing_goal_policy: MissingGoalPolicy = "degrade"

    def missing_goal(self, event: IndexedEvent, goal_id: int) -> None:
        """Report an event whose goal has no row yet."""
        if self.missing_goal_policy == "strict":
            raise MissingGoalError(goal_id, event.event_type, event.activity_id)
        logger.warning(
            "%s at %s (block %d) refers to unknown goal %d; applying defaults",
            event.event_type,
            event.activity_id,
            event.block_number,
            goal_id,
        )


Handler = Callable[[IndexedEvent, HandlerContext], None]


def _activity(
    event: IndexedEvent,
    type_: ActivityType,
    *,
    user: str,
    goal_id: int | None,
    goal_title: str | None = None,
    stake_amount: int | None = None,
    deadline: int | None = None,
    is_solo: bool | None = None,
    successful: bool | None = None,
    is_valid: bool | None = None,
    claim_amount: int | None = None,
) -> Activity:
    return Activity(
        id=event.activity_id,
        type=type_,
        user=user,
        goal_id=goal_id,
        goal_title=goal_title,
        stake_amount=stake_amount,
        deadline=deadline,
        is_solo=is_solo,
        successful=successful,
        is_valid=is_valid,
        claim_amount=claim_amount,
        timestamp=event.block_timestamp,
        block_number=event.block_number,
    )


# ---------------------------------------------------------------------------
# Goal lifecycle
# ---------------------------------------------------------------------------


def handle_goal_created(event: IndexedEvent, ctx: HandlerContext) -> None:
    args: GoalCreated = event.args  # type: ignore[assignment]
    description = ctx.description
    if description is None:
        # A missed lookup keeps whatever an earlier delivery stored.
        prior = ctx.tx.get_goal(args.goal_id)
        description = prior.description if prior else ""

    is_new = ctx.tx.upsert_goal(
        Goal(
            goal_id=args.goal_id,
            creator=args.creator,
            stake_amount=args.stake_amount,
            deadline=args.deadline,
            description=description,
            is_solo=args.is_solo,
            created_at=event.block_timestamp,
        )
    )
    ctx.tx.insert_activity(
        _activity(
            event,
            "goal_created",
            user=args.creator,
            goal_id=args.goal_id,
            goal_title=description,
            stake_amount=args.stake_amount,
            deadline=args.deadline,
            is_solo=args.is_solo,
        )
    )

    if ctx.redelivered or not is_new:
        logger.debug("goal %d already indexed; stats unchanged", args.goal_id)
        return
    stats = ctx.tx.ensure_user_stats(args.creator)
    ctx.tx.save_user_stats(
        record_goal_created(stats, stake_amount=args.stake_amount, created_at=event.block_timestamp)
    )


def handle_goal_resolved(event: IndexedEvent, ctx: HandlerContext) -> None:
    args: GoalResolved = event.args  # type: ignore[assignment]
    prior = ctx.tx.get_goal(args.goal_id)

    if prior is None:
        ctx.missing_goal(event, args.goal_id)
    else:
        ctx.tx.mark_goal_resolved(args.goal_id, successful=args.successful, resolved_at=event.block_timestamp)

    ctx.tx.insert_activity(
        _activity(
            event,
            "goal_resolved",
            user=prior.creator if prior else ZERO_ADDRESS,
            goal_id=args.goal_id,
            goal_title=prior.description if prior else None,
            stake_amount=prior.stake_amount if prior else 0,
            deadline=prior.deadline if prior else 0,
            is_solo=args.is_solo,
            successful=args.successful,
        )
    )

    # Creator is only known through the prior goal row.
    if prior is None or ctx.redelivered or prior.resolved:
        return
    stats = ctx.tx.ensure_user_stats(prior.creator)
    ctx.tx.save_user_stats(
        record_goal_resolved(stats, successful=args.successful, stake_amount=prior.stake_amount)
    )


def handle_streak_frozen(event: IndexedEvent, ctx: HandlerContext) -> None:
    args: StreakFrozen = event.args  # type: ignore[assignment]
    prior = ctx.tx.get_goal(args.goal_id)

    if prior is None:
        ctx.missing_goal(event, args.goal_id)
    else:
        ctx.tx.update_goal_deadline(args.goal_id, args.new_deadline)

    ctx.tx.insert_activity(
        _activity(
            event,
            "streak_frozen",
            user=prior.creator if prior else ZERO_ADDRESS,
            goal_id=args.goal_id,
            goal_title=prior.description if prior else None,
            stake_amount=args.fee_paid,
            deadline=args.new_deadline,
        )
    )


def handle_goal_canceled(event: IndexedEvent, ctx: HandlerContext) -> None:
    args: GoalCanceled = event.args  # type: ignore[assignment]
    prior = ctx.tx.get_goal(args.goal_id)

    if prior is None:
        ctx.missing_goal(event, args.goal_id)
    else:
        # Stored like a failed resolution, but never routed through the
        # resolution stats: no goals_failed / total_lost / streak change.
        ctx.tx.mark_goal_resolved(args.goal_id, successful=False, resolved_at=event.block_timestamp)

    ctx.tx.insert_activity(
        _activity(
            event,
            "goal_canceled",
            user=args.creator,
            goal_id=args.goal_id,
            goal_title=prior.description if prior else None,
            claim_amount=args.refund_amount,
        )
    )

    if ctx.redelivered or (prior is not None and prior.resolved):
        return
    stats = ctx.tx.ensure_user_stats(args.creator)
    ctx.tx.save_user_stats(record_goal_canceled(stats, refund_amount=args.refund_amount))


# ---------------------------------------------------------------------------
# Feed-only events
# ---------------------------------------------------------------------------


def handle_vote_cast(event: IndexedEvent, ctx: HandlerContext) -> None:
    args: VoteCast = event.args  # type: ignore[assignment]
    prior = ctx.tx.get_goal(args.goal_id)
    ctx.tx.insert_activity(
        _activity(
            event,
            "vote_cast",
            user=args.voter,
            goal_id=args.goal_id,
            goal_title=prior.description if prior else None,
            is_solo=False,
            is_valid=args.is_valid,
        )
    )


def handle_funds_claimed(event: IndexedEvent, ctx: HandlerContext) -> None:
    args: FundsClaimed = event.args  # type: ignore[assignment]
    prior = ctx.tx.get_goal(args.goal_id)
    ctx.tx.insert_activity(
        _activity(
            event,
            "funds_claimed",
            user=args.claimant,
            goal_id=args.goal_id,
            goal_title=prior.description if prior else None,
            claim_amount=args.amount,
        )
    )


def handle_badge_claimed(event: IndexedEvent, ctx: HandlerContext) -> None:
    args: BadgeClaimed = event.args  # type: ignore[assignment]
    prior = ctx.tx.get_goal(args.goal_id)
    ctx.tx.insert_activity(
        _activity(
            event,
            "badge_claimed",
            user=args.creator,
            goal_id=args.goal_id,
            goal_title=prior.description if prior else None,
        )
    )


HANDLERS: dict[str, Handler] = {
    "GoalCreated": handle_goal_created,
    "GoalResolved": handle_goal_resolved,
    "VoteCast": handle_vote_cast,
    "FundsClaimed": handle_funds_claimed,
    "StreakFrozen": handle_streak_frozen,
    "BadgeClaimed": handle_badge_claimed,
    "GoalCanceled": handle_goal_canceled,
}
