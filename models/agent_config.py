"""Per-session configuration for the conversational process."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from models.agent_session_record import TranscriptMessage

DEFAULT_ALLOWED_TOOLS = ["web_search"]
DEFAULT_MAX_TURNS = 100


@dataclass
class AgentConfig:
	"""Options applied when a conversation process is started.

	Attributes:
		allowed_tools: Hosted tool names the assistant may invoke.
		system_prompt: Instructions sent with every turn; the presentation
			designer prompt is used when omitted.
		max_turns: Maximum number of exchanges served by one process.
		history: Stored transcript the process resumes from when it has no
			server-side conversation to continue.
	"""

	allowed_tools: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_TOOLS))
	system_prompt: Optional[str] = None
	max_turns: int = DEFAULT_MAX_TURNS
	history: List[TranscriptMessage] = field(default_factory=list)
