"""Generic event decoder.

Translates raw logs into `ParsedEvent` using an `EventRegistry` defined by
`EventSpec` + (topic|data) field specs. Output keys come from each spec's
projection.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from vouchind.core.models import EventLog, Meta
from vouchind.decoding.specs import EventRegistry, EventSpec, resolve_projection_ref
from vouchind.decoding.utils import parse_data_word, parse_topic_field, word_at

# ---------- parsed event ----------


@dataclass(slots=True)
class ParsedEvent:
    """Decoded event: event name, log metadata and projected values."""

    name: str
    contract: str
    meta: Meta
    values: dict[str, Any]


# ---------- helper functions ----------


def _validate_and_get_spec(topics: Sequence[str], registry: EventRegistry) -> EventSpec | None:
    """Return the spec for topic0, or None if topics are empty / unknown."""
    if not topics:
        return None
    return registry.get(topics[0].lower())


def log_data_bytes(data_hex: str) -> bytes:
    """Decode the `data` field of an RPC log."""
    h = data_hex[2:] if data_hex.lower().startswith("0x") else data_hex
    return bytes.fromhex(h) if h else b""


# ---------- main decoder ----------


def decode_event(
    *,
    topics: Sequence[str],
    data: bytes,
    meta: Meta,
    registry: EventRegistry,
) -> ParsedEvent | None:
    """Decode raw log (topics + data) into a `ParsedEvent`.

    Returns None when topic0 is unknown, an indexed topic is missing, or the
    data section is shorter than the spec requires.
    """
    spec = _validate_and_get_spec(topics, registry)
    if spec is None:
        return None

    topic_vals: dict[str, Any] = {}
    for tf in spec.topic_fields:
        if tf.index >= len(topics):
            return None
        topic_vals[tf.name] = parse_topic_field(topics[tf.index], tf)

    if len(data) < 32 * spec.data_words:
        return None

    data_vals: dict[str, Any] = {}
    for df in spec.data_fields:
        data_vals[df.name] = parse_data_word(word_at(data, df.word_index), df.type)

    values = {out_key: resolve_projection_ref(ref, topic_vals, data_vals) for out_key, ref in spec.projection.items()}

    return ParsedEvent(
        name=spec.name,
        contract=meta.address.lower(),
        meta=meta,
        values=values,
    )


def decode_log(log: EventLog, registry: EventRegistry) -> ParsedEvent | None:
    """Decode one `EventLog` as returned by the RPC client."""
    meta = Meta(
        block_number=log.block_number,
        block_timestamp=log.block_timestamp,
        tx_hash=log.tx_hash,
        log_index=log.log_index,
        address=log.address,
    )
    return decode_event(
        topics=log.topics,
        data=log_data_bytes(log.data_hex),
        meta=meta,
        registry=registry,
    )
