"""Build an EventRegistry from a contract ABI (JSON list or file path).

Use this when the deployed VouchieVault ABI is at hand; it yields the same
specs as `make_vouchie_registry()` for the same event definitions.
"""

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Literal

from eth_utils.abi import event_signature_to_log_topic
from pydantic import BaseModel

from vouchind.decoding.registries import add_event_spec
from vouchind.decoding.registry_builder import default_projection
from vouchind.decoding.specs import DataFieldSpec, EventRegistry, EventSpec, TopicFieldSpec


class AbiInput(BaseModel):
    indexed: bool = False
    internalType: str | None = None
    name: str
    type: str


class AbiEvent(BaseModel):
    anonymous: bool = False
    inputs: Sequence[AbiInput]
    name: str
    type: Literal["event"]


def get_event_signature(event: AbiEvent) -> str:
    return f"{event.name}({','.join(event_input.type for event_input in event.inputs)})"


def get_event_topic0(event: AbiEvent) -> str:
    return "0x" + event_signature_to_log_topic(get_event_signature(event)).hex()


def get_event_topic_field_specs(event: AbiEvent) -> list[TopicFieldSpec]:
    indexed = [event_input for event_input in event.inputs if event_input.indexed]
    return [TopicFieldSpec(event_input.name, idx + 1, event_input.type) for idx, event_input in enumerate(indexed)]


def get_event_data_field_specs(event: AbiEvent) -> list[DataFieldSpec]:
    data = [event_input for event_input in event.inputs if not event_input.indexed]
    return [DataFieldSpec(event_input.name, idx, event_input.type) for idx, event_input in enumerate(data)]


def get_event_spec(event: AbiEvent) -> EventSpec:
    topic_fields = get_event_topic_field_specs(event)
    data_fields = get_event_data_field_specs(event)
    return EventSpec(
        topic0=get_event_topic0(event),
        name=event.name,
        topic_fields=topic_fields,
        data_fields=data_fields,
        projection=default_projection(topic_fields, data_fields),
    )


AbiJson = Iterable[dict[str, Any]]
AbiSpec = AbiJson | Path


def _load_abi(abi: AbiSpec) -> AbiJson:
    if isinstance(abi, Path):
        loaded = json.loads(abi.read_text())
        # Hardhat / Foundry artifacts wrap the ABI in {"abi": [...]}
        return loaded["abi"] if isinstance(loaded, dict) else loaded
    return abi


def get_events_from_abi(abi: AbiSpec) -> dict[str, AbiEvent]:
    entries = _load_abi(abi)
    return {entry["name"]: AbiEvent.model_validate(entry) for entry in entries if entry.get("type") == "event"}


def make_event_registry_from_events(events: Iterable[AbiEvent]) -> EventRegistry:
    reg: EventRegistry = {}
    for event in events:
        add_event_spec(reg, get_event_spec(event))
    return reg


def make_event_registry_from_abi(abi: AbiSpec) -> EventRegistry:
    return make_event_registry_from_events(get_events_from_abi(abi).values())
