"""Close agent sessions that have been idle longer than a timeout."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional

from services.agent.agent_service import AgentService

LOGGER = logging.getLogger(__name__)


class SessionReaper:
	"""Close registry sessions with no listeners and no recent activity."""

	def __init__(self, agent_service: AgentService, timeout_seconds: float = 3_600) -> None:
		"""
		Args:
			agent_service: Registry whose sessions are inspected.
			timeout_seconds: Idle time after which a session is closed.
		"""
		self._agent_service = agent_service
		self.timeout_seconds = timeout_seconds

	def reap_idle(self, now: Optional[float] = None) -> List[str]:
		"""Close idle sessions and return their identifiers."""
		now = time.time() if now is None else now
		closed: List[str] = []
		for session_id in self._agent_service.session_ids():
			session = self._agent_service.get_session(session_id)
			if session is None or session.listener_count:
				continue
			if now - session.last_activity < self.timeout_seconds:
				continue
			if self._agent_service.close_session(session_id):
				closed.append(session_id)
		if closed:
			LOGGER.info("Closed %d idle agent session(s)", len(closed))
		return closed

	async def run_periodic(self, interval_seconds: float = 60) -> None:
		"""Reap idle sessions every `interval_seconds` until cancelled."""
		while True:
			try:
				self.reap_idle()
				await asyncio.sleep(interval_seconds)
			except asyncio.CancelledError:
				break
			except Exception:  # pylint: disable=broad-exception-caught
				LOGGER.exception("Idle agent session sweep failed")
				await asyncio.sleep(interval_seconds)
