"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with sane timeouts/connection limits
- Helper utilities to format block numbers and topics

It returns `EventLog` records ready for downstream decoding.
"""

from __future__ import annotations

import itertools
from collections.abc import Sequence
from typing import Any

import httpx

from vouchind.core.errors import RPCError
from vouchind.core.models import EventLog


def to_hex_block(x: int) -> str:
    """Return a 0x-prefixed hex block number."""
    return hex(x)


def topics_param(topic0s: Sequence[str]) -> list[list[str]]:
    """Format topic0 signatures for eth_getLogs RPC call (OR over topic0)."""
    return [[t.lower() for t in topic0s]]


def _hex_or_int(v: Any) -> int | None:
    if isinstance(v, str):
        return int(v, 16) if v.startswith("0x") else int(v)
    if isinstance(v, int):
        return v
    return None


def parse_log(rl: dict[str, Any]) -> EventLog:
    """Map one raw `eth_getLogs` entry to an `EventLog`."""
    topics = tuple((t if isinstance(t, str) else t.decode()).lower() for t in rl.get("topics", []))
    return EventLog(
        address=rl["address"].lower(),
        topics=topics,
        data_hex=str(rl.get("data") or "0x"),
        block_number=int(rl["blockNumber"], 16),
        tx_hash=(rl.get("transactionHash") or rl.get("transaction_hash") or "").lower(),
        log_index=int(rl["logIndex"], 16),
        block_timestamp=_hex_or_int(rl.get("blockTimestamp")),
    )


class RPC:
    """Minimal async RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    """

    def __init__(self, url: str, *, timeout_s: int = 20, max_connections: int = 32) -> None:
        self.url = url
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
        )
        self._ids = itertools.count(1)
        self._ts_cache: dict[int, int] = {}

    async def request(self, method: str, params: list[Any]) -> Any:
        """POST one JSON-RPC call and return its `result`."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        r = await self.client.post(self.url, json=payload)
        r.raise_for_status()
        data = r.json()
        if "error" in data:
            e = data["error"]
            if isinstance(e, dict):
                raise RPCError(method, e.get("code"), e.get("message"))
            raise RPCError(method, None, str(e))
        return data.get("result")

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        return int(await self.request("eth_blockNumber", []), 16)

    async def block_timestamp(self, block_number: int) -> int:
        """Return a block's timestamp (cached; blocks are immutable once final)."""
        ts = self._ts_cache.get(block_number)
        if ts is None:
            block = await self.request("eth_getBlockByNumber", [to_hex_block(block_number), False])
            if block is None:
                raise RPCError("eth_getBlockByNumber", None, f"block {block_number} not found")
            ts = int(block["timestamp"], 16)
            self._ts_cache[block_number] = ts
        return ts

    async def get_logs(
        self,
        *,
        address: str,
        topic0s: Sequence[str],
        from_block: int,
        to_block: int,
    ) -> list[EventLog]:
        """Fetch logs for an address and a set of topic0 signatures within a block range."""
        params = [
            {
                "address": address.lower(),
                "fromBlock": to_hex_block(from_block),
                "toBlock": to_hex_block(to_block),
                "topics": topics_param(topic0s),
            }
        ]
        result = await self.request("eth_getLogs", params)
        return [parse_log(rl) for rl in result or []]

    async def call(self, *, to: str, data: str, block: int | str = "latest") -> bytes:
        """`eth_call` against a contract; returns the raw return data."""
        tag = to_hex_block(block) if isinstance(block, int) else block
        result = await self.request("eth_call", [{"to": to.lower(), "data": data}, tag])
        h = (result or "0x")[2:]
        return bytes.fromhex(h)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
