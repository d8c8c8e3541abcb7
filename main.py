import asyncio
import inspect
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from routes.agent_chat_route import router as agent_chat_router
from routes.agent_session_route import router as agent_session_router
from services.agent.agent_service import AgentService
from services.agent.conversation_process import OpenAIConversationProcess
from services.agent.session_reaper import SessionReaper
from utils.agent_settings import AgentSettings
from utils.database_cleaner import DatabaseCleaner
from utils.database_init import AsyncDatabaseInitializer

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def build_agent_service(client: AsyncOpenAI, settings: AgentSettings) -> AgentService:
    """Create the registry whose sessions run OpenAI-backed conversations."""
    return AgentService(
        lambda config: OpenAIConversationProcess(client, config, model=settings.model),
        default_config=settings.agent_config(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite database (at DATABASE_DIR/app.db)
      - the OpenAI async client
      - the agent session registry and its background housekeeping
    and attach them to `app.state`.
    """
    settings = AgentSettings.from_env()
    app.state.agent_settings = settings

    db_initializer = AsyncDatabaseInitializer()
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    app.state.openai_client = openai_client
    app.state.agent_service = build_agent_service(openai_client, settings)

    reaper = SessionReaper(app.state.agent_service, settings.session_timeout_seconds)
    cleaner = DatabaseCleaner(db_initializer, settings.archive_retention_days, app.state.agent_service)
    background = [
        asyncio.create_task(reaper.run_periodic(settings.reaper_interval_seconds)),
        asyncio.create_task(cleaner.run_periodic_cleanup()),
    ]

    try:
        yield
    finally:
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)
        app.state.agent_service.cleanup()

        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    LOGGER.warning("Failed to close OpenAI client: %s", exc)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting DB, OpenAI client, and live agent sessions.
        """
        state = request.app.state
        has_db = hasattr(state, "db_initializer")
        has_openai = getattr(state, "openai_client", None) is not None
        agent_service = getattr(state, "agent_service", None)
        return {
            "ok": True,
            "db_initialized": has_db,
            "openai_available": has_openai,
            "agent_sessions": len(agent_service) if agent_service is not None else 0,
        }

    app.include_router(agent_session_router)
    app.include_router(agent_chat_router)

    return app


app = create_app()
