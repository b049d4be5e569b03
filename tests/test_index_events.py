from unittest.mock import AsyncMock

import pytest
from conftest import ALICE, goal_record

from vouchind.api.read import ReadAPI
from vouchind.core.errors import EventProcessingError, RPCError, UnknownEventError
from vouchind.core.events import IndexedEvent, VoteCast
from vouchind.core.use_cases.handlers import HANDLERS, _activity
from vouchind.core.use_cases.index_events import IndexEventsService


@pytest.mark.asyncio
async def test_apply_advances_cursor_and_counts(store, goal_reader, events) -> None:
    service = IndexEventsService(store, goal_reader)
    batch = [events.created(1), events.vote(1), events.resolved(1, True)]

    stats = await service.apply_many(batch)

    assert stats.applied == 3
    assert stats.redelivered == 0
    assert stats.by_type["GoalCreated"] == 1
    assert stats.last_position == batch[-1].position
    assert store.get_cursor().position == batch[-1].position


@pytest.mark.asyncio
async def test_cursor_never_moves_backwards(store, goal_reader, events) -> None:
    service = IndexEventsService(store, goal_reader)
    first, second = events.created(1), events.created(2)

    await service.apply_many([first, second])
    await service.apply(first)

    assert store.get_cursor().position == second.position


@pytest.mark.asyncio
async def test_apply_returns_false_on_redelivery(store, goal_reader, events) -> None:
    service = IndexEventsService(store, goal_reader)
    event = events.created(1)

    assert await service.apply(event) is True
    assert await service.apply(event) is False


@pytest.mark.asyncio
async def test_unknown_event_type_is_rejected(store, goal_reader) -> None:
    service = IndexEventsService(store, goal_reader)
    event = IndexedEvent(
        event_type="Upgraded",
        args=VoteCast(1, ALICE, True),
        transaction_hash="0x" + "ab" * 32,
        log_index=0,
        block_number=1,
        block_timestamp=1,
    )

    with pytest.raises(UnknownEventError):
        await service.apply(event)
    assert store.get_cursor() is None


@pytest.mark.asyncio
async def test_description_lookup_failure_degrades_to_empty(store, events) -> None:
    reader = AsyncMock()
    reader.read_goal = AsyncMock(side_effect=RPCError("eth_call", -32000, "execution reverted"))
    service = IndexEventsService(store, reader)

    stats = await service.apply_many([events.created(1)])

    api = ReadAPI(store)
    assert stats.description_misses == 1
    assert api.get_goal(1).description == ""
    assert api.list_activities()[0].goal_title == ""
    assert api.get_user_stats(ALICE).goals_created == 1


@pytest.mark.asyncio
async def test_redelivered_creation_keeps_stored_description(store, events) -> None:
    reader = AsyncMock()
    reader.read_goal = AsyncMock(
        side_effect=[
            goal_record(1, "run 5k"),
            RPCError("eth_call", -32000, "execution reverted"),
            RPCError("eth_call", -32000, "execution reverted"),
        ]
    )
    service = IndexEventsService(store, reader)
    created = events.created(1)

    await service.apply(created)
    await service.apply(created)
    await service.apply(events.created(1, tx="0x" + "ab" * 32, log_index=0))

    api = ReadAPI(store)
    assert api.get_goal(1).description == "run 5k"
    assert {a.goal_title for a in api.list_activities()} == {"run 5k"}
    assert api.get_user_stats(ALICE).goals_created == 1


@pytest.mark.asyncio
async def test_no_reader_means_empty_description(store, events) -> None:
    service = IndexEventsService(store)

    await service.apply(events.created(1))

    assert ReadAPI(store).get_goal(1).description == ""


@pytest.mark.asyncio
async def test_failed_event_is_rolled_back(store, goal_reader, events, monkeypatch) -> None:
    def failing_vote(event, ctx):
        ctx.tx.insert_activity(_activity(event, "vote_cast", user=ALICE, goal_id=1))
        raise RuntimeError("disk full")

    monkeypatch.setitem(HANDLERS, "VoteCast", failing_vote)
    service = IndexEventsService(store, goal_reader)
    created = events.created(1)
    await service.apply(created)

    vote = events.vote(1)
    with pytest.raises(EventProcessingError) as exc:
        await service.apply(vote)

    assert exc.value.activity_id == vote.activity_id
    assert isinstance(exc.value.cause, RuntimeError)
    api = ReadAPI(store)
    assert [a.type for a in api.list_activities()] == ["goal_created"]
    assert store.get_cursor().position == created.position


@pytest.mark.asyncio
async def test_apply_many_stops_at_first_failure(store, goal_reader, events, monkeypatch) -> None:
    def failing_vote(event, ctx):
        raise RuntimeError("boom")

    monkeypatch.setitem(HANDLERS, "VoteCast", failing_vote)
    service = IndexEventsService(store, goal_reader)

    with pytest.raises(EventProcessingError):
        await service.apply_many([events.created(1), events.vote(1), events.created(2)])

    api = ReadAPI(store)
    assert api.get_goal(1) is not None
    assert api.get_goal(2) is None


@pytest.mark.asyncio
async def test_apply_stream_consumes_async_source(store, goal_reader, events) -> None:
    batch = [events.created(1), events.resolved(1, True)]

    async def source():
        for e in batch:
            yield e

    stats = await IndexEventsService(store, goal_reader).apply_stream(source())

    assert stats.applied == 2
    assert ReadAPI(store).get_user_stats(ALICE).current_streak == 1
