"""Typed reads of VouchieVault contract state.

`goals(uint256)` returns a flat tuple; it is decoded here, once, into a
`GoalRecord` so nothing downstream indexes into it by position.
"""

from __future__ import annotations

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from vouchind.clients.rpc import RPC
from vouchind.core.events import GoalRecord
from vouchind.core.models import canonical_address

GOALS_SIGNATURE = "goals(uint256)"

# (id, creator, stakeAmount, deadline, createdAt, description, resolved, successful, votesValid, votesInvalid)
GOAL_STRUCT_TYPES: tuple[str, ...] = (
    "uint256",
    "address",
    "uint256",
    "uint256",
    "uint256",
    "string",
    "bool",
    "bool",
    "uint256",
    "uint256",
)


def encode_goals_call(goal_id: int) -> str:
    """Calldata for `goals(goal_id)`."""
    selector = function_signature_to_4byte_selector(GOALS_SIGNATURE)
    return "0x" + (selector + encode(["uint256"], [goal_id])).hex()


def decode_goal_record(raw: bytes) -> GoalRecord:
    """Decode the return data of `goals(uint256)`."""
    (
        goal_id,
        creator,
        stake_amount,
        deadline,
        created_at,
        description,
        resolved,
        successful,
        votes_valid,
        votes_invalid,
    ) = decode(list(GOAL_STRUCT_TYPES), raw)
    return GoalRecord(
        goal_id=goal_id,
        creator=canonical_address(creator),
        stake_amount=stake_amount,
        deadline=deadline,
        created_at=created_at,
        description=description,
        resolved=resolved,
        successful=successful,
        votes_valid=votes_valid,
        votes_invalid=votes_invalid,
    )


class VouchieVaultReader:
    """`IGoalReader` backed by `eth_call` on the vault contract."""

    def __init__(self, rpc: RPC, address: str) -> None:
        self._rpc = rpc
        self.address = canonical_address(address)

    async def read_goal(self, goal_id: int) -> GoalRecord:
        raw = await self._rpc.call(to=self.address, data=encode_goals_call(goal_id))
        return decode_goal_record(raw)
