"""Turn one chat request into a server-sent event stream of agent output."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from dal.agent_session_dal import AgentSessionDAL
from models.agent_events import AgentEvent, AssistantText, ExchangeError, ExchangeResult, ToolUse
from models.agent_session_record import TranscriptMessage
from services.agent.agent_session import AgentSession

LOGGER = logging.getLogger(__name__)

DONE_RECORD = "data: [DONE]\n\n"

CompletionHook = Callable[[str], Awaitable[None]]


def format_sse(payload: Dict[str, Any]) -> str:
	"""Encode one payload as an SSE `data:` record."""
	return f"data: {json.dumps(payload)}\n\n"


class AgentStreamAdapter:
	"""Relay one exchange of an AgentSession to a single HTTP response.

	The adapter registers a listener for the lifetime of `stream()` only and
	always removes it, whether the exchange succeeds, fails, or the client
	goes away. On a successful result the transcript (history, the user's
	turn, and the assistant reply) is persisted before `[DONE]` is written.
	"""

	def __init__(
		self,
		agent_session: AgentSession,
		dal: AgentSessionDAL,
		*,
		session_id: str,
		user_id: str,
		history: List[TranscriptMessage],
		user_message: str,
		full_message: Optional[str] = None,
		on_complete: Optional[CompletionHook] = None,
	) -> None:
		self.agent_session = agent_session
		self.dal = dal
		self.session_id = session_id
		self.user_id = user_id
		self.history = list(history)
		self.user_message = user_message
		self.full_message = full_message if full_message is not None else user_message
		self.on_complete = on_complete

	async def stream(self) -> AsyncIterator[str]:
		"""Yield SSE records until the exchange reaches a terminal event."""
		events: asyncio.Queue = asyncio.Queue()

		def listener(event: AgentEvent) -> None:
			events.put_nowait(event)

		self.agent_session.add_listener(listener)
		try:
			try:
				self.agent_session.send_message(self.full_message)
			except Exception as exc:  # pylint: disable=broad-exception-caught
				LOGGER.error("Failed to send turn to agent session %s: %s", self.session_id, exc)
				yield format_sse(ExchangeError(message=str(exc) or "Unknown error").to_payload())
				return

			reply_parts: List[str] = []
			while True:
				event = await events.get()
				if isinstance(event, AssistantText):
					reply_parts.append(event.content)
					yield format_sse(event.to_payload())
				elif isinstance(event, ToolUse):
					yield format_sse(event.to_payload())
				elif isinstance(event, ExchangeResult):
					yield format_sse(event.to_payload())
					if await self._persist("".join(reply_parts), event):
						yield DONE_RECORD
					return
				elif isinstance(event, ExchangeError):
					yield format_sse(event.to_payload())
					return
		finally:
			self.agent_session.remove_listener(listener)

	async def _persist(self, reply: str, result: ExchangeResult) -> bool:
		"""Store the completed exchange; failures are logged, not raised.

		The completion hook only runs for successful exchanges.
		"""
		messages = self.history + [
			TranscriptMessage.now("user", self.user_message),
			TranscriptMessage.now("assistant", reply),
		]
		try:
			await self.dal.update_messages(self.session_id, self.user_id, messages)
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.error("Failed to save messages for agent session %s: %s", self.session_id, exc)
			return False
		if self.on_complete is not None and result.success:
			try:
				await self.on_complete(reply)
			except Exception as exc:  # pylint: disable=broad-exception-caught
				LOGGER.error("Post-exchange hook failed for agent session %s: %s", self.session_id, exc)
		return True
