"""Event specification primitives and registry typing.

Defines lightweight dataclasses to describe how to decode events:
- `TopicFieldSpec` / `DataFieldSpec`: typed sources for indexed topics / data words
- `EventSpec`: one event rule (topic0, fields, projection onto output names)
- `EventRegistry`: mapping from topic0 → EventSpec
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any


# ---- Projection mapping ----
# Keys: output names (the typed record's field names, e.g. "goal_id")
# Values: references to parsed fields or constants
#   - ProjectionRefs.TopicRef(name="goalId")  → take from parsed indexed topic fields
#   - ProjectionRefs.DataRef(name="isSolo")   → take from parsed data words
#   - ProjectionRefs.Constant(value=...)      → output a constant
class ProjectionRefs:
    @dataclass(kw_only=True)
    class TopicRef:
        name: str

    @dataclass(kw_only=True)
    class DataRef:
        name: str

    @dataclass(kw_only=True)
    class Constant:
        value: Any


ProjectionRef = ProjectionRefs.TopicRef | ProjectionRefs.DataRef | ProjectionRefs.Constant

Projection = Mapping[str, ProjectionRef]


def resolve_projection_ref(
    ref: ProjectionRef,
    topic_vals: dict[str, Any],
    data_vals: dict[str, Any],
) -> Any:
    """Resolve a projection reference against parsed topic / data values."""
    match ref:
        case ProjectionRefs.TopicRef():
            return topic_vals.get(ref.name)
        case ProjectionRefs.DataRef():
            return data_vals.get(ref.name)
        case ProjectionRefs.Constant():
            return ref.value
    raise RuntimeError(f"Unsupported projection reference {ref!r}")


@dataclass(frozen=True)
class TopicFieldSpec:
    """Describe one indexed topic field (by 0-based topic index and ABI type)."""

    name: str
    index: int
    type: str  # e.g., "address", "uint256", "bool"


@dataclass(frozen=True)
class DataFieldSpec:
    """Describe one 32-byte ABI word in the data section (0-based word index)."""

    name: str
    word_index: int
    type: str  # static types only: "address", "uint256", "bool", ...


@dataclass(frozen=True)
class EventSpec:
    """One event decoding rule + projection onto output names."""

    topic0: str
    name: str
    topic_fields: list[TopicFieldSpec]
    data_fields: list[DataFieldSpec]
    projection: Projection

    def __post_init__(self):
        def _has_field(ref_name: str, fields: Sequence[TopicFieldSpec | DataFieldSpec]) -> bool:
            return any(f.name == ref_name for f in fields)

        for name, ref in self.projection.items():
            if not isinstance(ref, ProjectionRef):
                raise ValueError(f"{name} projection is not a ProjectionRef instance")
            match ref:
                case ProjectionRefs.TopicRef():
                    if not _has_field(ref.name, self.topic_fields):
                        raise ValueError(f"{name} projection refers to a non-existent topic field {ref.name!r}")
                case ProjectionRefs.DataRef():
                    if not _has_field(ref.name, self.data_fields):
                        raise ValueError(f"{name} projection refers to a non-existent data field {ref.name!r}")

    @property
    def data_words(self) -> int:
        """Minimum number of 32-byte words the data section must hold."""
        if not self.data_fields:
            return 0
        return max(df.word_index for df in self.data_fields) + 1


# The full registry keyed by topic0 (lowercased 0x-hex).
EventRegistry = dict[str, EventSpec]


def get_event_specs_topic0s(event_specs: Iterable[EventSpec]) -> list[str]:
    return [event_spec.topic0 for event_spec in event_specs]


def get_event_registry_topic0s(registry: EventRegistry) -> list[str]:
    return get_event_specs_topic0s(registry.values())
