import time

import pytest

from agent_fakes import Recorder
from services.agent.session_reaper import SessionReaper


@pytest.mark.asyncio
async def test_reap_idle_closes_only_idle_sessions_without_listeners(agent_service):
    idle = agent_service.get_or_create_session("idle")
    busy = agent_service.get_or_create_session("busy")
    busy.add_listener(Recorder())
    fresh = agent_service.get_or_create_session("fresh")

    idle.last_activity = time.time() - 120
    busy.last_activity = time.time() - 120

    reaper = SessionReaper(agent_service, timeout_seconds=60)
    closed = reaper.reap_idle()

    assert closed == ["idle"]
    assert idle.closed
    assert "busy" in agent_service
    assert "fresh" in agent_service
    assert not fresh.closed


@pytest.mark.asyncio
async def test_reap_idle_with_nothing_to_do(agent_service):
    agent_service.get_or_create_session("recent")
    reaper = SessionReaper(agent_service, timeout_seconds=3_600)
    assert reaper.reap_idle() == []
