"""Process-wide registry of live agent sessions."""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from models.agent_config import AgentConfig
from models.agent_session_record import TranscriptMessage
from services.agent.agent_session import AgentSession
from services.agent.conversation_process import ConversationProcess

LOGGER = logging.getLogger(__name__)

ProcessFactory = Callable[[AgentConfig], ConversationProcess]


class AgentService:
	"""Map session identifiers to at most one live AgentSession each.

	One instance is created by the application lifespan and shared through
	`app.state.agent_service`. Sessions are only removed by `close_session`
	or `cleanup`; idle eviction is driven from outside.
	"""

	def __init__(self, process_factory: ProcessFactory, default_config: Optional[AgentConfig] = None) -> None:
		self._process_factory = process_factory
		self._default_config = default_config or AgentConfig()
		self._sessions: Dict[str, AgentSession] = {}
		self._lock = threading.Lock()

	def __len__(self) -> int:
		return len(self._sessions)

	def __contains__(self, session_id: object) -> bool:
		return session_id in self._sessions

	def session_ids(self) -> List[str]:
		with self._lock:
			return list(self._sessions)

	def get_or_create_session(
		self,
		session_id: str,
		config: Optional[AgentConfig] = None,
		history: Optional[Iterable[TranscriptMessage]] = None,
	) -> AgentSession:
		"""Return the live session for `session_id`, creating it when absent.

		A session whose conversation process has stopped is closed and
		replaced. `history` seeds a newly created process with the stored
		transcript; it is ignored when a live session is returned.
		"""
		with self._lock:
			session = self._sessions.get(session_id)
			if session is not None and session.is_alive:
				return session
			if session is not None:
				LOGGER.info("Replacing stopped agent session %s", session_id)
				session.close()
			config = config or self._default_config
			if history:
				config = dataclasses.replace(config, history=list(history))
			session = AgentSession(session_id, self._process_factory(config), config)
			self._sessions[session_id] = session
		LOGGER.info("Agent session %s started", session_id)
		return session

	def get_session(self, session_id: str) -> Optional[AgentSession]:
		return self._sessions.get(session_id)

	def close_session(self, session_id: str) -> bool:
		"""Close and forget the session. Returns True if one was live."""
		with self._lock:
			session = self._sessions.pop(session_id, None)
		if session is None:
			return False
		session.close()
		return True

	def cleanup(self) -> None:
		"""Close every live session (used on shutdown)."""
		with self._lock:
			sessions = list(self._sessions.values())
			self._sessions.clear()
		for session in sessions:
			session.close()
		if sessions:
			LOGGER.info("Closed %d agent session(s)", len(sessions))
