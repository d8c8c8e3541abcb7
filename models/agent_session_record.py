from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

SESSION_STATUSES = ("active", "completed", "archived")
MESSAGE_ROLES = ("user", "assistant", "system")
DEFAULT_SESSION_TITLE = "New Agent Session"


def _iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@dataclass
class TranscriptMessage:
    """One persisted turn of an agent conversation."""

    role: str
    content: str
    timestamp: Optional[str] = None

    @classmethod
    def now(cls, role: str, content: str) -> "TranscriptMessage":
        return cls(role=role, content=content, timestamp=datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptMessage":
        return cls(
            role=str(data.get("role") or "user"),
            content=str(data.get("content") or ""),
            timestamp=data.get("timestamp"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data


@dataclass
class AgentSessionRecord:
    """In-memory representation of a row in the AGENT_SESSION table.

    Attributes:
        id: Internal primary key (None for new records), never exposed to clients.
        session_id: Opaque identifier clients use to address the session.
        user_id: Owner of the session.
        title: Human-readable label.
        messages: Ordered transcript of the conversation.
        status: One of `active`, `completed`, `archived`.
        generated_outline: Outline sections saved by outline generation.
        generated_slides: Slide payload saved by slide generation.
        created_at: Unix timestamp when the row was inserted.
        updated_at: Unix timestamp of the last mutation.
        last_activity_at: Unix timestamp of the last persisted activity.
    """

    id: Optional[int]
    session_id: str
    user_id: str
    title: str = DEFAULT_SESSION_TITLE
    messages: List[TranscriptMessage] = field(default_factory=list)
    status: str = "active"
    generated_outline: List[str] = field(default_factory=list)
    generated_slides: Optional[Dict[str, Any]] = None
    created_at: Optional[float] = None
    updated_at: Optional[float] = None
    last_activity_at: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the client-facing JSON shape (camelCase keys)."""
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "title": self.title,
            "messages": [msg.to_dict() for msg in self.messages],
            "status": self.status,
            "generatedOutline": list(self.generated_outline),
            "generatedSlides": self.generated_slides,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "lastActivityAt": _iso(self.last_activity_at),
        }
