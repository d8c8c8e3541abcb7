import time

import pytest

from models.agent_session_record import TranscriptMessage
from utils.database_cleaner import DatabaseCleaner


@pytest.mark.asyncio
async def test_create_and_get_scoped_to_owner(dal):
    record = await dal.create_session("user-1", "Launch deck")

    assert record.id is not None
    assert record.session_id != str(record.id)
    fetched = await dal.get_session(record.session_id, "user-1")
    assert fetched.title == "Launch deck"
    assert fetched.status == "active"
    assert fetched.messages == []
    assert await dal.get_session(record.session_id, "user-2") is None


@pytest.mark.asyncio
async def test_list_orders_by_last_activity(dal):
    older = await dal.create_session("user-1", "Older")
    newer = await dal.create_session("user-1", "Newer")
    await dal.create_session("user-2", "Someone else")

    assert [r.session_id for r in await dal.list_sessions("user-1")] == [newer.session_id, older.session_id]

    await dal.update_title(older.session_id, "user-1", "Older, touched")
    assert [r.session_id for r in await dal.list_sessions("user-1")] == [older.session_id, newer.session_id]


@pytest.mark.asyncio
async def test_update_messages_round_trips_transcript(dal):
    record = await dal.create_session("user-1")
    messages = [
        TranscriptMessage.now("user", "Hello"),
        TranscriptMessage("assistant", "Hi there", None),
    ]

    assert await dal.update_messages(record.session_id, "user-1", messages) is True

    stored = (await dal.get_session(record.session_id, "user-1")).messages
    assert [(m.role, m.content) for m in stored] == [("user", "Hello"), ("assistant", "Hi there")]
    assert stored[0].timestamp == messages[0].timestamp
    assert stored[1].timestamp is None


@pytest.mark.asyncio
async def test_mutations_by_another_user_change_nothing(dal):
    record = await dal.create_session("user-1", "Mine")

    assert await dal.update_title(record.session_id, "user-2", "Stolen") is False
    assert await dal.delete_session(record.session_id, "user-2") is False
    assert (await dal.get_session(record.session_id, "user-1")).title == "Mine"


@pytest.mark.asyncio
async def test_status_is_validated(dal):
    record = await dal.create_session("user-1")

    assert await dal.update_status(record.session_id, "user-1", "archived") is True
    with pytest.raises(ValueError):
        await dal.update_status(record.session_id, "user-1", "paused")
    assert (await dal.get_session(record.session_id, "user-1")).status == "archived"


@pytest.mark.asyncio
async def test_outline_and_slides_are_stored(dal):
    record = await dal.create_session("user-1")

    await dal.save_outline(record.session_id, "user-1", ["# Slide 1: Intro"])
    await dal.save_slides(record.session_id, "user-1", {"xml": "<SLIDES/>"})

    stored = await dal.get_session(record.session_id, "user-1")
    assert stored.generated_outline == ["# Slide 1: Intro"]
    assert stored.generated_slides == {"xml": "<SLIDES/>"}
    assert stored.to_dict()["generatedSlides"] == {"xml": "<SLIDES/>"}


@pytest.mark.asyncio
async def test_delete(dal):
    record = await dal.create_session("user-1")

    assert await dal.delete_session(record.session_id, "user-1") is True
    assert await dal.get_session(record.session_id, "user-1") is None


@pytest.mark.asyncio
async def test_cleaner_prunes_only_old_archived_sessions(dal, db_initializer):
    old_archived = await dal.create_session("user-1", "Old archived")
    old_active = await dal.create_session("user-1", "Old active")
    new_archived = await dal.create_session("user-1", "New archived")
    await dal.update_status(old_archived.session_id, "user-1", "archived")
    await dal.update_status(new_archived.session_id, "user-1", "archived")

    stale = time.time() - 40 * 86_400
    async with db_initializer.connection() as conn:
        await conn.execute(
            "UPDATE AGENT_SESSION SET last_activity_at = ? WHERE session_id IN (?, ?)",
            (stale, old_archived.session_id, old_active.session_id),
        )
        await conn.commit()

    removed = await DatabaseCleaner(db_initializer, retention_days=30).prune_archived_sessions()

    assert removed == [old_archived.session_id]
    remaining = {r.session_id for r in await dal.list_sessions("user-1")}
    assert remaining == {old_active.session_id, new_archived.session_id}


@pytest.mark.asyncio
async def test_cleaner_closes_live_agents_of_pruned_sessions(dal, db_initializer, agent_service):
    archived = await dal.create_session("user-1", "Archived")
    await dal.update_status(archived.session_id, "user-1", "archived")
    kept = await dal.create_session("user-1", "Kept")
    archived_agent = agent_service.get_or_create_session(archived.session_id)
    kept_agent = agent_service.get_or_create_session(kept.session_id)
    async with db_initializer.connection() as conn:
        await conn.execute(
            "UPDATE AGENT_SESSION SET last_activity_at = ?",
            (time.time() - 40 * 86_400,),
        )
        await conn.commit()

    cleaner = DatabaseCleaner(db_initializer, retention_days=30, agent_service=agent_service)
    removed = await cleaner.prune_archived_sessions()

    assert removed == [archived.session_id]
    assert archived_agent.closed
    assert archived.session_id not in agent_service
    assert not kept_agent.closed
    assert kept.session_id in agent_service
