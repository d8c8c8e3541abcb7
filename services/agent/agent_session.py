"""A long-running agent conversation shared by many HTTP requests."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Optional, Tuple

from models.agent_config import AgentConfig
from models.agent_events import AgentEvent, ExchangeError, SessionListener
from services.agent.conversation_process import ConversationProcess
from services.agent.message_queue import MessageQueue, QueueClosedError

LOGGER = logging.getLogger(__name__)


class AgentSessionClosedError(QueueClosedError):
	"""Raised when a message is sent to a closed or stopped session."""


class AgentSession:
	"""Own one conversation process, its input queue, and its listeners.

	The process reads user turns from the session's MessageQueue. A single
	background pump reads the process output and hands every event to each
	registered listener, in order. Listeners are plain callables invoked on
	the event loop; they must not block.
	"""

	def __init__(self, session_id: str, process: ConversationProcess, config: Optional[AgentConfig] = None) -> None:
		self.session_id = session_id
		self.config = config or AgentConfig()
		self.created_at = time.time()
		self.last_activity = self.created_at
		self._queue = MessageQueue()
		self._listeners: Tuple[SessionListener, ...] = ()
		self._lock = threading.Lock()
		self._closed = False
		self._faulted = False
		self._events = process.run(self._queue.turns())
		self._pump_task = asyncio.get_running_loop().create_task(
			self._pump(), name=f"agent-session-pump-{session_id}"
		)

	@property
	def closed(self) -> bool:
		return self._closed

	@property
	def faulted(self) -> bool:
		return self._faulted

	@property
	def is_alive(self) -> bool:
		return not (self._closed or self._faulted)

	@property
	def listener_count(self) -> int:
		return len(self._listeners)

	@property
	def pump_task(self) -> asyncio.Task:
		return self._pump_task

	def send_message(self, content: str) -> None:
		"""Queue a user turn; returns immediately."""
		if self._closed:
			raise AgentSessionClosedError(f"Agent session {self.session_id} is closed.")
		self._queue.push(content)
		self.last_activity = time.time()

	def add_listener(self, listener: SessionListener) -> None:
		with self._lock:
			self._listeners = self._listeners + (listener,)

	def remove_listener(self, listener: SessionListener) -> None:
		with self._lock:
			self._listeners = tuple(l for l in self._listeners if l != listener)

	def close(self) -> None:
		"""Stop accepting input and release every listener. Irreversible."""
		if self._closed:
			return
		self._closed = True
		self._queue.close()
		# Requests still waiting on an exchange must not hang.
		self._broadcast(ExchangeError(message="Agent session closed."))
		with self._lock:
			self._listeners = ()
		LOGGER.info("Agent session %s closed", self.session_id)

	async def _pump(self) -> None:
		try:
			async for event in self._events:
				self.last_activity = time.time()
				LOGGER.debug("Agent session %s event %s", self.session_id, event.kind)
				self._broadcast(event)
		except asyncio.CancelledError:
			raise
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.exception("Conversation process failed in agent session %s", self.session_id)
			self._faulted = True
			self._queue.close()
			self._broadcast(ExchangeError(message=str(exc) or type(exc).__name__))
			return
		if not self._closed:
			LOGGER.warning("Conversation process for agent session %s ended", self.session_id)
			self._faulted = True
			self._queue.close()
			self._broadcast(ExchangeError(message="Conversation process ended."))

	def _broadcast(self, event: AgentEvent) -> None:
		for listener in self._listeners:
			# Skip listeners removed earlier in this same broadcast.
			if listener not in self._listeners:
				continue
			try:
				listener(event)
			except Exception:  # pylint: disable=broad-exception-caught
				LOGGER.exception("Listener failed in agent session %s", self.session_id)
