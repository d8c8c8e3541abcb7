"""Helpers to remove stale archived agent sessions from the SQLite database."""

import asyncio
import logging
import time
from typing import List, Optional

from services.agent.agent_service import AgentService
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class DatabaseCleaner:
    """Delete archived AGENT_SESSION rows older than the retention window."""

    def __init__(
        self,
        db_initializer: AsyncDatabaseInitializer,
        retention_days: int = 30,
        agent_service: Optional[AgentService] = None,
    ) -> None:
        """
        Args:
            db_initializer: Shared database initializer/connection provider.
            retention_days: Age threshold in days; archived sessions inactive longer are removed.
            agent_service: Registry whose live agents are closed along with their rows.
        """
        self._db = db_initializer
        self.retention_days = retention_days
        self._agent_service = agent_service

    async def prune_archived_sessions(self, days_old: int | None = None) -> List[str]:
        """Delete archived sessions past the retention window.

        Returns the session ids that were removed. Any live agent still
        registered for one of them is closed.
        """
        days = self.retention_days if days_old is None else days_old
        cutoff = time.time() - days * 86_400
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT session_id FROM AGENT_SESSION WHERE status = 'archived' AND last_activity_at < ?",
                (cutoff,),
            )
            session_ids = [row[0] for row in await cur.fetchall()]
            if session_ids:
                placeholders = ", ".join("?" for _ in session_ids)
                await conn.execute(
                    f"DELETE FROM AGENT_SESSION WHERE session_id IN ({placeholders})",
                    tuple(session_ids),
                )
                await conn.commit()

        if self._agent_service is not None:
            for session_id in session_ids:
                self._agent_service.close_session(session_id)
        return session_ids

    async def run_periodic_cleanup(self, interval_seconds: int = 3_600) -> None:
        """
        Repeatedly prune archived sessions at the given interval until cancelled.

        Args:
            interval_seconds: Seconds to sleep between cleanup runs.
        """
        while True:
            try:
                removed = await self.prune_archived_sessions()
                if removed:
                    LOGGER.info("Pruned %d archived agent session(s)", len(removed))
                await asyncio.sleep(interval_seconds)
            except asyncio.CancelledError:
                break
            except Exception:
                LOGGER.exception("Archived session cleanup failed")
                await asyncio.sleep(interval_seconds)
