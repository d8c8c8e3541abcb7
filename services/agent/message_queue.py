"""Single-consumer async queue feeding user turns into a conversation."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Optional

_CLOSED = object()


class QueueClosedError(RuntimeError):
	"""Raised when a turn is pushed after the queue was closed."""


class MessageQueue:
	"""Unbounded FIFO of user turns with one consumer and many producers.

	`push` never blocks; a consumer suspended in `get` is woken directly.
	After `close`, turns already buffered are still delivered, then the
	sequence ends.
	"""

	def __init__(self) -> None:
		self._queue: asyncio.Queue = asyncio.Queue()
		self._closed = False
		self._consuming = False

	@property
	def closed(self) -> bool:
		return self._closed

	def __len__(self) -> int:
		# Sentinel is not a turn.
		return self._queue.qsize() - (1 if self._closed else 0)

	def push(self, content: str) -> None:
		"""Enqueue a user turn without blocking the caller."""
		if self._closed:
			raise QueueClosedError("Message queue is closed; start a new session.")
		self._queue.put_nowait(content)

	async def get(self) -> Optional[str]:
		"""Return the next turn, or None once the queue is closed and drained."""
		if self._consuming:
			raise RuntimeError("MessageQueue supports a single consumer.")
		self._consuming = True
		try:
			item = await self._queue.get()
		finally:
			self._consuming = False
		if item is _CLOSED:
			# Leave the sentinel in place so later reads also terminate.
			self._queue.put_nowait(_CLOSED)
			return None
		return item

	async def turns(self) -> AsyncIterator[str]:
		"""Yield turns in push order until the queue is closed."""
		while True:
			item = await self.get()
			if item is None:
				return
			yield item

	def close(self) -> None:
		"""Stop accepting turns; idempotent."""
		if self._closed:
			return
		self._closed = True
		self._queue.put_nowait(_CLOSED)
