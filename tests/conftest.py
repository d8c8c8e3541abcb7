"""Shared fixtures: a database in tmp_path, a registry of scripted agents, and an app."""

import httpx
import pytest
import pytest_asyncio

from agent_fakes import ProcessFactory, shutdown_service
from dal.agent_session_dal import AgentSessionDAL
from services.agent.agent_service import AgentService
from utils.agent_settings import AgentSettings
from utils.database_init import AsyncDatabaseInitializer


@pytest.fixture
def db_initializer(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "db"))
    return AsyncDatabaseInitializer()


@pytest.fixture
def dal(db_initializer):
    return AgentSessionDAL(db_initializer)


@pytest.fixture
def process_factory():
    return ProcessFactory()


@pytest_asyncio.fixture
async def agent_service(process_factory):
    service = AgentService(process_factory)
    yield service
    await shutdown_service(service)


@pytest.fixture
def app(db_initializer, agent_service):
    from main import create_app

    application = create_app()
    application.state.db_initializer = db_initializer
    application.state.agent_service = agent_service
    application.state.agent_settings = AgentSettings()
    application.state.openai_client = None
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
