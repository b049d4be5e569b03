"""Event registry for the VouchieVault contract.

Composable like any EventRegistry: merge with `{**a, **b}`.

Example
-------
>>> from vouchind.decoding.registries import make_vouchie_registry
>>> reg = make_vouchie_registry()
>>> sorted(spec.name for spec in reg.values())[:2]
['BadgeClaimed', 'FundsClaimed']
"""

from __future__ import annotations

from collections.abc import Iterable

from .registry_builder import make_registry
from .specs import EventRegistry, EventSpec

VOUCHIE_VAULT_EVENTS: list[str] = [
    "GoalCreated(uint256 indexed goalId, address indexed creator, uint256 stakeAmount, uint256 deadline, bool isSolo)",
    "GoalResolved(uint256 indexed goalId, bool successful, bool isSolo)",
    "VoteCast(uint256 indexed goalId, address indexed voter, bool isValid)",
    "FundsClaimed(uint256 indexed goalId, address indexed claimant, uint256 amount)",
    "StreakFrozen(uint256 indexed goalId, uint256 newDeadline, uint256 feePaid)",
    "BadgeClaimed(uint256 indexed goalId, address indexed creator)",
    "GoalCanceled(uint256 indexed goalId, address indexed creator, uint256 refundAmount)",
]


def make_vouchie_registry() -> EventRegistry:
    """Return the registry for every VouchieVault event the indexer handles."""
    return make_registry(VOUCHIE_VAULT_EVENTS)


def add_event_spec(registry: EventRegistry, spec: EventSpec) -> None:
    """Insert one spec into the registry keyed by lowercased topic0."""
    registry[spec.topic0.lower()] = spec


def add_many(registry: EventRegistry, specs: Iterable[EventSpec]) -> None:
    """Insert many specs into the registry."""
    for s in specs:
        add_event_spec(registry, s)


def topic0_by_name(registry: EventRegistry) -> dict[str, str]:
    """Event name → topic0, e.g. for building test logs or RPC filters."""
    return {spec.name: topic0 for topic0, spec in registry.items()}
