import json

import pytest
from conftest import ALICE, goal_created_log, goal_resolved_log, make_log

from vouchind.abi_events import get_events_from_abi, make_event_registry_from_abi
from vouchind.core.events import GoalCreated, GoalResolved, StreakFrozen
from vouchind.core.models import Meta
from vouchind.decoding.decoder import decode_event, decode_log
from vouchind.decoding.registries import VOUCHIE_VAULT_EVENTS, make_vouchie_registry, topic0_by_name
from vouchind.decoding.registry_builder import event_spec_from_signature
from vouchind.decoding.specs import DataFieldSpec, EventRegistry, EventSpec, ProjectionRefs, TopicFieldSpec
from vouchind.decoding.typed import to_indexed_event
from vouchind.decoding.utils import snake_case

VOUCHIE_ABI = [
    {
        "type": "event",
        "name": "GoalCreated",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "goalId", "type": "uint256"},
            {"indexed": True, "name": "creator", "type": "address"},
            {"indexed": False, "name": "stakeAmount", "type": "uint256"},
            {"indexed": False, "name": "deadline", "type": "uint256"},
            {"indexed": False, "name": "isSolo", "type": "bool"},
        ],
    },
    {
        "type": "event",
        "name": "GoalResolved",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "goalId", "type": "uint256"},
            {"indexed": False, "name": "successful", "type": "bool"},
            {"indexed": False, "name": "isSolo", "type": "bool"},
        ],
    },
    {"type": "function", "name": "goals", "inputs": [], "outputs": []},
]


@pytest.fixture
def sample_registry() -> EventRegistry:
    spec = EventSpec(
        topic0="0x123",
        name="TestEvent",
        topic_fields=[TopicFieldSpec("user", 1, "address")],
        data_fields=[DataFieldSpec("amount", 0, "uint256")],
        projection={
            "user": ProjectionRefs.TopicRef(name="user"),
            "amount": ProjectionRefs.DataRef(name="amount"),
            "source": ProjectionRefs.Constant(value="test"),
        },
    )
    return {spec.topic0: spec}


def test_decode_event_success(sample_registry: EventRegistry) -> None:
    meta = Meta(1, 1000, "0xtx", 0, "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045")
    topics = ["0x123", "0x" + "0" * 24 + "1234567890123456789012345678901234567890"]
    data = (100).to_bytes(32, "big")

    parsed = decode_event(topics=topics, data=data, meta=meta, registry=sample_registry)

    assert parsed is not None
    assert parsed.name == "TestEvent"
    assert parsed.contract == "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
    assert parsed.values == {
        "user": "0x1234567890123456789012345678901234567890",
        "amount": 100,
        "source": "test",
    }


def test_decode_event_unknown_topic(sample_registry: EventRegistry) -> None:
    meta = Meta(1, 1000, "0xtx", 0, "0xvault")

    assert decode_event(topics=["0x999"], data=b"", meta=meta, registry=sample_registry) is None
    assert decode_event(topics=[], data=b"", meta=meta, registry=sample_registry) is None


def test_decode_event_short_data_is_rejected(sample_registry: EventRegistry) -> None:
    meta = Meta(1, 1000, "0xtx", 0, "0xvault")
    topics = ["0x123", "0x" + "0" * 64]

    assert decode_event(topics=topics, data=b"\x01" * 31, meta=meta, registry=sample_registry) is None


def test_projection_must_reference_declared_fields() -> None:
    with pytest.raises(ValueError):
        EventSpec(
            topic0="0x1",
            name="Bad",
            topic_fields=[],
            data_fields=[],
            projection={"x": ProjectionRefs.DataRef(name="missing")},
        )


def test_snake_case() -> None:
    assert snake_case("goalId") == "goal_id"
    assert snake_case("newDeadline") == "new_deadline"
    assert snake_case("amount") == "amount"


def test_signature_spec_layout() -> None:
    spec = event_spec_from_signature(VOUCHIE_VAULT_EVENTS[0])

    assert spec.name == "GoalCreated"
    assert [(f.name, f.index) for f in spec.topic_fields] == [("goalId", 1), ("creator", 2)]
    assert [(f.name, f.word_index) for f in spec.data_fields] == [("stakeAmount", 0), ("deadline", 1), ("isSolo", 2)]
    assert set(spec.projection) == {"goal_id", "creator", "stake_amount", "deadline", "is_solo"}


def test_vouchie_registry_covers_every_event() -> None:
    names = set(topic0_by_name(make_vouchie_registry()))

    assert names == {
        "GoalCreated",
        "GoalResolved",
        "VoteCast",
        "FundsClaimed",
        "StreakFrozen",
        "BadgeClaimed",
        "GoalCanceled",
    }


def test_abi_registry_matches_signature_registry(tmp_path) -> None:
    artifact = tmp_path / "VouchieVault.json"
    artifact.write_text(json.dumps({"abi": VOUCHIE_ABI}))

    from_abi = make_event_registry_from_abi(artifact)
    from_sigs = topic0_by_name(make_vouchie_registry())

    assert set(get_events_from_abi(VOUCHIE_ABI)) == {"GoalCreated", "GoalResolved"}
    for topic0, spec in from_abi.items():
        assert from_sigs[spec.name] == topic0
        assert set(spec.projection) == set(make_vouchie_registry()[topic0].projection)


def test_goal_created_log_to_typed_event() -> None:
    log = goal_created_log(7, ALICE, 250, block=12, log_index=3, timestamp=1_700_000_144)

    parsed = decode_log(log, make_vouchie_registry())
    event = to_indexed_event(parsed)

    assert event is not None
    assert event.event_type == "GoalCreated"
    assert event.args == GoalCreated(goal_id=7, creator=ALICE, stake_amount=250, deadline=2_000_000_000, is_solo=True)
    assert event.block_timestamp == 1_700_000_144
    assert event.activity_id == f"{log.tx_hash}-3"


def test_bool_fields_decode_false() -> None:
    log = goal_resolved_log(7, False, block=12, log_index=0)

    event = to_indexed_event(decode_log(log, make_vouchie_registry()), block_timestamp=99)

    assert event.args == GoalResolved(goal_id=7, successful=False, is_solo=True)
    assert event.block_timestamp == 99


def test_typed_event_requires_a_timestamp() -> None:
    log = make_log("StreakFrozen", [("uint256", 1)], [("uint256", 5), ("uint256", 6)], block=3, log_index=0)
    parsed = decode_log(log, make_vouchie_registry())

    with pytest.raises(ValueError):
        to_indexed_event(parsed)
    assert to_indexed_event(parsed, block_timestamp=1).args == StreakFrozen(1, 5, 6)


def test_untyped_event_is_skipped(sample_registry: EventRegistry) -> None:
    meta = Meta(1, 1000, "0xtx", 0, "0xvault")
    parsed = decode_event(
        topics=["0x123", "0x" + "0" * 64],
        data=(1).to_bytes(32, "big"),
        meta=meta,
        registry=sample_registry,
    )

    assert to_indexed_event(parsed) is None
