from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from eth_abi import encode

from vouchind.core.events import (
    BadgeClaimed,
    FundsClaimed,
    GoalCanceled,
    GoalCreated,
    GoalRecord,
    GoalResolved,
    IndexedEvent,
    StreakFrozen,
    VoteCast,
)
from vouchind.core.models import EventLog
from vouchind.decoding.registries import make_vouchie_registry, topic0_by_name
from vouchind.storage.store import DuckDBStore

ALICE = "0x00000000000000000000000000000000000000a1"
BOB = "0x00000000000000000000000000000000000000b0"
CAROL = "0x00000000000000000000000000000000000000c0"
VAULT = "0x000000000000000000000000000000000000fa11"

USDC = 10**6


@pytest.fixture
def mock_rpc():
    rpc = AsyncMock()
    rpc.get_logs = AsyncMock(return_value=[])
    rpc.latest_block = AsyncMock(return_value=100)
    rpc.block_timestamp = AsyncMock(side_effect=lambda n: 1_700_000_000 + 12 * n)
    rpc.aclose = AsyncMock()
    return rpc


@pytest.fixture
def store() -> Iterator[DuckDBStore]:
    s = DuckDBStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def goal_reader():
    reader = AsyncMock()
    reader.read_goal = AsyncMock(side_effect=lambda goal_id: goal_record(goal_id))
    return reader


def goal_record(goal_id: int, description: str | None = None) -> GoalRecord:
    return GoalRecord(
        goal_id=goal_id,
        creator=ALICE,
        stake_amount=100 * USDC,
        deadline=2_000_000_000,
        created_at=1_700_000_000,
        description=description if description is not None else f"goal #{goal_id}",
        resolved=False,
        successful=False,
        votes_valid=0,
        votes_invalid=0,
    )


# ---------------------------------------------------------------------------
# IndexedEvent factories
# ---------------------------------------------------------------------------


class EventFactory:
    """Builds events at increasing (block, log index) positions."""

    def __init__(self) -> None:
        self.block = 10
        self.log_index = 0

    def _event(self, name: str, args: Any, *, tx: str | None = None, log_index: int | None = None) -> IndexedEvent:
        self.log_index += 1
        if self.log_index > 3:
            self.block += 1
            self.log_index = 0
        li = self.log_index if log_index is None else log_index
        return IndexedEvent(
            event_type=name,
            args=args,
            transaction_hash=tx or f"0x{self.block:08x}{li:056x}",
            log_index=li,
            block_number=self.block,
            block_timestamp=1_700_000_000 + 12 * self.block,
        )

    def created(self, goal_id: int, creator: str = ALICE, stake: int = 100 * USDC, *, solo: bool = True, **kw) -> IndexedEvent:
        return self._event("GoalCreated", GoalCreated(goal_id, creator, stake, 2_000_000_000, solo), **kw)

    def resolved(self, goal_id: int, successful: bool, *, solo: bool = True, **kw) -> IndexedEvent:
        return self._event("GoalResolved", GoalResolved(goal_id, successful, solo), **kw)

    def vote(self, goal_id: int, voter: str = BOB, valid: bool = True, **kw) -> IndexedEvent:
        return self._event("VoteCast", VoteCast(goal_id, voter, valid), **kw)

    def claimed(self, goal_id: int, claimant: str = ALICE, amount: int = 100 * USDC, **kw) -> IndexedEvent:
        return self._event("FundsClaimed", FundsClaimed(goal_id, claimant, amount), **kw)

    def frozen(self, goal_id: int, new_deadline: int = 2_100_000_000, fee: int = 5 * USDC, **kw) -> IndexedEvent:
        return self._event("StreakFrozen", StreakFrozen(goal_id, new_deadline, fee), **kw)

    def badge(self, goal_id: int, creator: str = ALICE, **kw) -> IndexedEvent:
        return self._event("BadgeClaimed", BadgeClaimed(goal_id, creator), **kw)

    def canceled(self, goal_id: int, creator: str = ALICE, refund: int = 100 * USDC, **kw) -> IndexedEvent:
        return self._event("GoalCanceled", GoalCanceled(goal_id, creator, refund), **kw)


@pytest.fixture
def events() -> EventFactory:
    return EventFactory()


# ---------------------------------------------------------------------------
# Raw log builders
# ---------------------------------------------------------------------------


def topic_word(typ: str, value: Any) -> str:
    return "0x" + encode([typ], [value]).hex()


def make_log(
    name: str,
    indexed: list[tuple[str, Any]],
    data: list[tuple[str, Any]],
    *,
    block: int,
    log_index: int,
    tx: str | None = None,
    timestamp: int | None = None,
) -> EventLog:
    topic0 = topic0_by_name(make_vouchie_registry())[name]
    return EventLog(
        address=VAULT,
        topics=(topic0, *(topic_word(t, v) for t, v in indexed)),
        data_hex="0x" + encode([t for t, _ in data], [v for _, v in data]).hex(),
        block_number=block,
        tx_hash=tx or f"0x{block:032x}{log_index:032x}",
        log_index=log_index,
        block_timestamp=timestamp,
    )


def goal_created_log(goal_id: int, creator: str, stake: int, *, block: int, log_index: int, **kw) -> EventLog:
    return make_log(
        "GoalCreated",
        [("uint256", goal_id), ("address", creator)],
        [("uint256", stake), ("uint256", 2_000_000_000), ("bool", True)],
        block=block,
        log_index=log_index,
        **kw,
    )


def goal_resolved_log(goal_id: int, successful: bool, *, block: int, log_index: int, **kw) -> EventLog:
    return make_log(
        "GoalResolved",
        [("uint256", goal_id)],
        [("bool", successful), ("bool", True)],
        block=block,
        log_index=log_index,
        **kw,
    )
