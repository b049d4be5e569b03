"""Block-range utilities.

All intervals are inclusive on both ends: [start, end].
"""

from __future__ import annotations

from collections.abc import Generator

from vouchind.core.interfaces import IEvmLogsProvider


def iter_chunks(a: int, b: int, step: int) -> Generator[tuple[int, int], None, None]:
    """Yield inclusive [start, end] block ranges of size at most `step`."""
    if step <= 0:
        raise ValueError("step must be positive")
    x = a
    while x <= b:
        y = min(b, x + step - 1)
        yield (x, y)
        x = y + 1


async def resolve_block_range(
    logs_provider: IEvmLogsProvider,
    start_block: int | str,
    end_block: int | str,
    *,
    confirmations: int = 0,
) -> tuple[int, int]:
    """Resolve start and end blocks, handling 'earliest' / 'latest'.

    'latest' means the head minus `confirmations`, so shallow re-orgs are
    mostly behind us by the time a block is indexed.
    """
    if isinstance(start_block, str) and start_block.lower() in ("earliest", "genesis"):
        start = 0
    else:
        start = int(start_block)

    if isinstance(end_block, str) and end_block.lower() == "latest":
        end = max(0, await logs_provider.latest_block() - confirmations)
    else:
        end = int(end_block)

    if start > end:
        raise ValueError(f"start_block ({start}) must be <= end_block ({end})")

    return start, end
