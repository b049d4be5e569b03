from unittest.mock import AsyncMock

import httpx
import pytest
from conftest import ALICE, VAULT
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from vouchind.clients.rpc import RPC, parse_log
from vouchind.clients.vault import GOAL_STRUCT_TYPES, VouchieVaultReader, decode_goal_record, encode_goals_call
from vouchind.core.errors import RPCError


def _goal_return_data(description: str) -> bytes:
    return encode(
        list(GOAL_STRUCT_TYPES),
        [7, ALICE, 100, 2_000_000_000, 1_700_000_000, description, True, False, 2, 1],
    )


def test_encode_goals_call() -> None:
    data = encode_goals_call(7)

    assert data.startswith("0x" + function_signature_to_4byte_selector("goals(uint256)").hex())
    assert data.endswith("0" * 63 + "7")
    assert len(data) == 2 + 8 + 64


def test_decode_goal_record() -> None:
    record = decode_goal_record(_goal_return_data("run 5k every morning"))

    assert record.goal_id == 7
    assert record.creator == ALICE
    assert record.description == "run 5k every morning"
    assert record.resolved is True
    assert record.successful is False
    assert (record.votes_valid, record.votes_invalid) == (2, 1)


@pytest.mark.asyncio
async def test_reader_calls_vault(mock_rpc) -> None:
    mock_rpc.call = AsyncMock(return_value=_goal_return_data("read a book"))

    record = await VouchieVaultReader(mock_rpc, VAULT.upper().replace("0X", "0x")).read_goal(7)

    assert record.description == "read a book"
    mock_rpc.call.assert_awaited_once_with(to=VAULT, data=encode_goals_call(7))


def test_parse_log() -> None:
    log = parse_log(
        {
            "address": "0xABC",
            "topics": ["0xAA", "0xBB"],
            "data": "0x01",
            "blockNumber": "0x10",
            "transactionHash": "0xDEAD",
            "logIndex": "0x2",
        }
    )

    assert log.address == "0xabc"
    assert log.topics == ("0xaa", "0xbb")
    assert log.block_number == 16
    assert log.log_index == 2
    assert log.tx_hash == "0xdead"
    assert log.block_timestamp is None


def _rpc_with(handler) -> RPC:
    rpc = RPC("http://node.test")
    rpc.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return rpc


@pytest.mark.asyncio
async def test_rpc_error_payload_raises() -> None:
    rpc = _rpc_with(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "limit exceeded"}}))

    with pytest.raises(RPCError) as exc:
        await rpc.latest_block()
    await rpc.aclose()

    assert exc.value.code == -32005
    assert exc.value.method == "eth_blockNumber"


@pytest.mark.asyncio
async def test_block_timestamp_is_cached() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"timestamp": "0x64"}})

    rpc = _rpc_with(handler)
    assert await rpc.block_timestamp(5) == 100
    assert await rpc.block_timestamp(5) == 100
    await rpc.aclose()

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_call_returns_bytes() -> None:
    rpc = _rpc_with(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x0102"}))

    assert await rpc.call(to=VAULT, data="0x") == b"\x01\x02"
    await rpc.aclose()
