"""Async Data Access Layer for the AGENT_SESSION table.

Provides AgentSessionDAL with async CRUD operations compatible with
`utils.database_init.AsyncDatabaseInitializer`. Every lookup and mutation is
scoped to the owning user.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from models.agent_session_record import (
    DEFAULT_SESSION_TITLE,
    SESSION_STATUSES,
    AgentSessionRecord,
    TranscriptMessage,
)
from utils.database_init import AsyncDatabaseInitializer


class AgentSessionDAL:
    """Data access layer for persisted agent sessions.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "session_id",
        "user_id",
        "title",
        "messages",
        "status",
        "generated_outline",
        "generated_slides",
        "created_at",
        "updated_at",
        "last_activity_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_session(self, user_id: str, title: Optional[str] = None) -> AgentSessionRecord:
        """Insert a new session for `user_id` and return it.

        Args:
            user_id: Owner of the new session.
            title: Optional label; defaults to "New Agent Session".
        """
        now = time.time()
        record = AgentSessionRecord(
            id=None,
            session_id=str(uuid4()),
            user_id=user_id,
            title=title or DEFAULT_SESSION_TITLE,
            created_at=now,
            updated_at=now,
            last_activity_at=now,
        )
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO AGENT_SESSION ({', '.join(self._COLUMNS[1:])}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.session_id,
                    record.user_id,
                    record.title,
                    "[]",
                    record.status,
                    "[]",
                    None,
                    now,
                    now,
                    now,
                ),
            )
            await conn.commit()
            record.id = cur.lastrowid
        return record

    async def list_sessions(self, user_id: str) -> List[AgentSessionRecord]:
        """Return the user's sessions, most recently active first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM AGENT_SESSION WHERE user_id = ? "
                "ORDER BY last_activity_at DESC, id DESC",
                (user_id,),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def get_session(self, session_id: str, user_id: str) -> Optional[AgentSessionRecord]:
        """Return the session if it exists and belongs to `user_id`."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM AGENT_SESSION WHERE session_id = ? AND user_id = ?",
                (session_id, user_id),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def update_messages(self, session_id: str, user_id: str, messages: Iterable[TranscriptMessage]) -> bool:
        """Replace the stored transcript. Returns True if a row was changed."""
        payload = json.dumps([msg.to_dict() for msg in messages])
        return await self._update(session_id, user_id, {"messages": payload})

    async def update_title(self, session_id: str, user_id: str, title: str) -> bool:
        return await self._update(session_id, user_id, {"title": title})

    async def update_status(self, session_id: str, user_id: str, status: str) -> bool:
        if status not in SESSION_STATUSES:
            raise ValueError(f"Invalid session status {status!r}; expected one of {', '.join(SESSION_STATUSES)}.")
        return await self._update(session_id, user_id, {"status": status})

    async def save_outline(self, session_id: str, user_id: str, outline: List[str]) -> bool:
        return await self._update(session_id, user_id, {"generated_outline": json.dumps(list(outline))})

    async def save_slides(self, session_id: str, user_id: str, slides: Dict[str, Any]) -> bool:
        return await self._update(session_id, user_id, {"generated_slides": json.dumps(slides)})

    async def delete_session(self, session_id: str, user_id: str) -> bool:
        """Delete the session. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute(
                "DELETE FROM AGENT_SESSION WHERE session_id = ? AND user_id = ?",
                (session_id, user_id),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def _update(self, session_id: str, user_id: str, updates: Dict[str, Any]) -> bool:
        """Apply column updates and bump the activity timestamps."""
        now = time.time()
        fields = [f"{col} = ?" for col in updates] + ["updated_at = ?", "last_activity_at = ?"]
        params = list(updates.values()) + [now, now, session_id, user_id]
        sql = f"UPDATE AGENT_SESSION SET {', '.join(fields)} WHERE session_id = ? AND user_id = ?"

        async with self._db.connection() as conn:
            await conn.execute(sql, tuple(params))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_record(row: Sequence[Any]) -> AgentSessionRecord:
        """Convert a DB row tuple into an AgentSessionRecord."""
        messages = [TranscriptMessage.from_dict(item) for item in json.loads(row[4] or "[]")]
        return AgentSessionRecord(
            id=row[0],
            session_id=row[1],
            user_id=row[2],
            title=row[3],
            messages=messages,
            status=row[5],
            generated_outline=list(json.loads(row[6] or "[]")),
            generated_slides=json.loads(row[7]) if row[7] else None,
            created_at=row[8],
            updated_at=row[9],
            last_activity_at=row[10],
        )
