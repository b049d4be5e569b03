"""Typed VouchieVault events and contract records.

Decoded logs are turned into these frozen records once, at the adapter
boundary, so handlers never index into positional tuples or string-keyed
dicts.
"""

from __future__ import annotations

from dataclasses import dataclass

from vouchind.core.models import Activity


@dataclass(frozen=True, slots=True)
class GoalCreated:
    goal_id: int
    creator: str
    stake_amount: int
    deadline: int
    is_solo: bool


@dataclass(frozen=True, slots=True)
class GoalResolved:
    goal_id: int
    successful: bool
    is_solo: bool


@dataclass(frozen=True, slots=True)
class VoteCast:
    goal_id: int
    voter: str
    is_valid: bool


@dataclass(frozen=True, slots=True)
class FundsClaimed:
    goal_id: int
    claimant: str
    amount: int


@dataclass(frozen=True, slots=True)
class StreakFrozen:
    goal_id: int
    new_deadline: int
    fee_paid: int


@dataclass(frozen=True, slots=True)
class BadgeClaimed:
    goal_id: int
    creator: str


@dataclass(frozen=True, slots=True)
class GoalCanceled:
    goal_id: int
    creator: str
    refund_amount: int


EventArgs = GoalCreated | GoalResolved | VoteCast | FundsClaimed | StreakFrozen | BadgeClaimed | GoalCanceled

# Contract event name → typed args record.
EVENT_ARGS: dict[str, type] = {
    "GoalCreated": GoalCreated,
    "GoalResolved": GoalResolved,
    "VoteCast": VoteCast,
    "FundsClaimed": FundsClaimed,
    "StreakFrozen": StreakFrozen,
    "BadgeClaimed": BadgeClaimed,
    "GoalCanceled": GoalCanceled,
}


@dataclass(frozen=True, slots=True)
class IndexedEvent:
    """One contract event occurrence as delivered by the event source."""

    event_type: str
    args: EventArgs
    transaction_hash: str
    log_index: int
    block_number: int
    block_timestamp: int

    @property
    def activity_id(self) -> str:
        return Activity.key(self.transaction_hash, self.log_index)

    @property
    def position(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)


@dataclass(frozen=True, slots=True)
class GoalRecord:
    """Return value of the contract's `goals(uint256)` getter."""

    goal_id: int
    creator: str
    stake_amount: int
    deadline: int
    created_at: int
    description: str
    resolved: bool
    successful: bool
    votes_valid: int
    votes_invalid: int
