"""Event decoding with projections onto typed records.

This package provides:
- Event specification system (EventSpec, TopicFieldSpec, DataFieldSpec)
- Generic decoder that translates raw logs into ParsedEvent objects
- Signature-based registry builder and the VouchieVault registry
- The adapter from ParsedEvent to typed IndexedEvent
"""

from vouchind.decoding.decoder import ParsedEvent, decode_event, decode_log
from vouchind.decoding.registries import VOUCHIE_VAULT_EVENTS, make_vouchie_registry, topic0_by_name
from vouchind.decoding.registry_builder import event_spec_from_signature, make_registry
from vouchind.decoding.specs import (
    DataFieldSpec,
    EventRegistry,
    EventSpec,
    Projection,
    ProjectionRefs,
    TopicFieldSpec,
)
from vouchind.decoding.typed import to_indexed_event

__all__ = [
    "ParsedEvent",
    "decode_event",
    "decode_log",
    "VOUCHIE_VAULT_EVENTS",
    "make_vouchie_registry",
    "topic0_by_name",
    "event_spec_from_signature",
    "make_registry",
    "DataFieldSpec",
    "EventRegistry",
    "EventSpec",
    "Projection",
    "ProjectionRefs",
    "TopicFieldSpec",
    "to_indexed_event",
]
