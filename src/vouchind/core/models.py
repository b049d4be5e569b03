"""Core data models for the VouchieVault indexer.

This module defines:
- `EventLog`: minimal RPC log record used by the decoder.
- `Meta`: per-log metadata carried through decoding.
- `ChunkRecord`: run-manifest entry for one fetched block range.
- `Goal`, `Activity`, `UserStats`: rows of the three materialized views.
- `SyncCursor`: position of the last applied event.

Design notes
------------
- Addresses are lowercased 0x-hex everywhere (canonical store keys).
- Amounts are unsigned integers in the token's smallest unit (USDC: 6 decimals).
- Timestamps are unix seconds taken from the block that emitted the event.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Literal

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

Status = Literal["started", "done", "failed"]

ActivityType = Literal[
    "goal_created",
    "goal_resolved",
    "vote_cast",
    "funds_claimed",
    "streak_frozen",
    "badge_claimed",
    "goal_canceled",
]

ACTIVITY_TYPES: tuple[str, ...] = (
    "goal_created",
    "goal_resolved",
    "vote_cast",
    "funds_claimed",
    "streak_frozen",
    "badge_claimed",
    "goal_canceled",
)


def canonical_address(address: str) -> str:
    """Return the store key for an address (lowercased, 0x-prefixed)."""
    a = address.strip().lower()
    return a if a.startswith("0x") else "0x" + a


# === RPC record ===


@dataclass(slots=True, frozen=True)
class EventLog:
    """Raw log as fetched from RPC, minimally normalized."""

    address: str  # lowercased 0x...
    topics: tuple[str, ...]  # lowercased 0x...
    data_hex: str  # "0x..."
    block_number: int
    tx_hash: str  # lowercased 0x...
    log_index: int
    block_timestamp: int | None = None


@dataclass(slots=True)
class Meta:
    """Lightweight metadata for a single log used during decoding."""

    block_number: int
    block_timestamp: int | None
    tx_hash: str
    log_index: int
    address: str


# === Manifest record ===


@dataclass(slots=True)
class ChunkRecord:
    """A single block-range execution record persisted to the run manifest."""

    from_block: int
    to_block: int
    status: Status
    attempts: int
    error: str | None
    logs: int  # raw logs fetched
    decoded: int  # typed events delivered to the indexer
    updated_at: float
    filtered: int = 0  # logs skipped (unknown topic0 / undecodable)

    def to_json_line(self) -> str:
        """Serialize as a compact JSON line."""
        return json.dumps(asdict(self), separators=(",", ":")) + "\n"


# === Materialized views ===


@dataclass(slots=True)
class Goal:
    """Authoritative snapshot of one goal's lifecycle fields."""

    goal_id: int
    creator: str
    stake_amount: int
    deadline: int
    description: str
    is_solo: bool
    resolved: bool = False
    successful: bool = False
    created_at: int = 0
    resolved_at: int | None = None


@dataclass(slots=True)
class Activity:
    """One immutable feed row, keyed by `{transaction_hash}-{log_index}`.

    `goal_title` is the goal description as of the event, not a join.
    `stake_amount`, `deadline`, `claim_amount` and the boolean flags are
    filled selectively depending on `type`.
    """

    id: str
    type: ActivityType
    user: str
    goal_id: int | None
    goal_title: str | None
    stake_amount: int | None
    deadline: int | None
    is_solo: bool | None
    successful: bool | None
    is_valid: bool | None
    claim_amount: int | None
    timestamp: int
    block_number: int

    @staticmethod
    def key(transaction_hash: str, log_index: int) -> str:
        """Composite primary key of one physical log occurrence."""
        return f"{transaction_hash.lower()}-{log_index}"


@dataclass(slots=True)
class UserStats:
    """Per-address aggregate counters and streak state."""

    address: str
    goals_created: int = 0
    goals_completed: int = 0
    goals_failed: int = 0
    total_staked: int = 0
    total_saved: int = 0
    total_lost: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_goal_at: int | None = None

    @staticmethod
    def empty(address: str) -> UserStats:
        """Return the zero row an address starts from."""
        return UserStats(address=canonical_address(address))


@dataclass(slots=True, frozen=True)
class SyncCursor:
    """Position (block number, log index) of the last applied event."""

    block_number: int
    log_index: int
    updated_at: float

    @property
    def position(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)
