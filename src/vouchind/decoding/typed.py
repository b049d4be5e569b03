"""Adapter from decoded logs to typed VouchieVault events.

This is the single place where string-keyed decoder output becomes the
frozen records of `vouchind.core.events`; everything downstream works on
named fields.
"""

from __future__ import annotations

import logging
from dataclasses import fields

from vouchind.core.events import EVENT_ARGS, IndexedEvent
from vouchind.core.models import canonical_address
from vouchind.decoding.decoder import ParsedEvent

logger = logging.getLogger(__name__)


def _coerce(value, annotation: str):
    if annotation == "str":
        return canonical_address(value)
    if annotation == "bool":
        return bool(value)
    return int(value)


def to_indexed_event(parsed: ParsedEvent, *, block_timestamp: int | None = None) -> IndexedEvent | None:
    """Build an `IndexedEvent` from a `ParsedEvent`.

    Returns None (and logs) for events the indexer has no typed record for,
    or when a required value is missing from the projection.
    """
    args_cls = EVENT_ARGS.get(parsed.name)
    if args_cls is None:
        logger.debug("no typed record for event %s", parsed.name)
        return None

    kwargs = {}
    for f in fields(args_cls):
        value = parsed.values.get(f.name)
        if value is None:
            logger.warning("%s at %s-%d lacks %r", parsed.name, parsed.meta.tx_hash, parsed.meta.log_index, f.name)
            return None
        # Annotations are strings under `from __future__ import annotations`
        kwargs[f.name] = _coerce(value, str(f.type))

    ts = block_timestamp if block_timestamp is not None else parsed.meta.block_timestamp
    if ts is None:
        raise ValueError(f"no block timestamp for block {parsed.meta.block_number}")

    return IndexedEvent(
        event_type=parsed.name,
        args=args_cls(**kwargs),
        transaction_hash=parsed.meta.tx_hash.lower(),
        log_index=parsed.meta.log_index,
        block_number=parsed.meta.block_number,
        block_timestamp=int(ts),
    )
