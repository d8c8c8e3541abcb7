"""Conversational process driven by the OpenAI Responses streaming API."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from openai import AsyncOpenAI

from models.agent_config import AgentConfig
from models.agent_events import AgentEvent, AssistantText, ExchangeResult, ToolUse
from services.agent.prompts import agent_system_prompt

LOGGER = logging.getLogger(__name__)

DEFAULT_AGENT_MODEL = "gpt-4.1"

# Tool names accepted in AgentConfig.allowed_tools and the hosted tool they enable.
HOSTED_TOOLS: Dict[str, Dict[str, Any]] = {
	"web_search": {"type": "web_search"},
}


class ConversationProcess(Protocol):
	"""Long-running conversation fed by an async stream of user turns."""

	def run(self, turns: AsyncIterator[str]) -> AsyncIterator[AgentEvent]:
		...


def _tool_use_from_item(item: Any) -> Optional[ToolUse]:
	"""Map a completed Responses output item to a ToolUse event."""
	item_type = getattr(item, "type", None)
	if item_type == "function_call":
		try:
			arguments = json.loads(getattr(item, "arguments", "{}") or "{}")
		except ValueError:
			arguments = {"raw": getattr(item, "arguments", "")}
		return ToolUse(name=getattr(item, "name", "function"), input=arguments)
	if item_type == "web_search_call":
		action = getattr(item, "action", None)
		query = getattr(action, "query", None) if action is not None else None
		return ToolUse(name="web_search", input={"query": query} if query else {})
	return None


class OpenAIConversationProcess:
	"""Serve one conversation: each user turn becomes a streamed Responses call.

	Turns are chained with `previous_response_id` so the model keeps the whole
	conversation without resending the transcript. A process started for a
	session with stored history sends that transcript once, ahead of its first
	turn.
	"""

	def __init__(self, client: AsyncOpenAI, config: Optional[AgentConfig] = None, *, model: str = DEFAULT_AGENT_MODEL) -> None:
		if client is None:
			raise ValueError("AsyncOpenAI client is required.")
		self.client = client
		self.config = config or AgentConfig()
		self.model = model
		self.exchanges = 0
		self._previous_response_id: Optional[str] = None

	def _tools(self) -> List[Dict[str, Any]]:
		tools = []
		for name in self.config.allowed_tools:
			tool = HOSTED_TOOLS.get(name)
			if tool is None:
				LOGGER.debug("Ignoring unsupported agent tool %r", name)
				continue
			tools.append(dict(tool))
		return tools

	def _request_kwargs(self, turn: str) -> Dict[str, Any]:
		kwargs: Dict[str, Any] = {
			"model": self.model,
			"instructions": self.config.system_prompt or agent_system_prompt(),
			"input": self._history_input() + [
				{"type": "message", "role": "user", "content": [{"type": "input_text", "text": turn}]},
			],
			"stream": True,
		}
		if self._previous_response_id:
			kwargs["previous_response_id"] = self._previous_response_id
		tools = self._tools()
		if tools:
			kwargs["tools"] = tools
		return kwargs

	def _history_input(self) -> List[Dict[str, Any]]:
		if self._previous_response_id:
			return []
		return [
			{"type": "message", "role": msg.role, "content": msg.content}
			for msg in self.config.history
			if msg.content
		]

	async def run(self, turns: AsyncIterator[str]) -> AsyncIterator[AgentEvent]:
		"""Yield events for every turn until the turn stream ends."""
		async for turn in turns:
			self.exchanges += 1
			if self.config.max_turns and self.exchanges > self.config.max_turns:
				LOGGER.info("Turn limit of %s reached", self.config.max_turns)
				yield ExchangeResult(success=False, subtype="error_max_turns")
				continue
			async for event in self._exchange(turn):
				yield event

	async def _exchange(self, turn: str) -> AsyncIterator[AgentEvent]:
		stream = await self.client.responses.create(**self._request_kwargs(turn))
		async for event in stream:
			event_type = getattr(event, "type", None)
			if event_type == "response.output_text.delta":
				delta = getattr(event, "delta", "")
				if delta:
					yield AssistantText(content=delta)
			elif event_type == "response.output_item.done":
				tool_use = _tool_use_from_item(getattr(event, "item", None))
				if tool_use is not None:
					yield tool_use
			elif event_type == "response.completed":
				self._remember(event)
				yield ExchangeResult(success=True)
				return
			elif event_type in ("response.incomplete", "response.failed"):
				self._remember(event)
				yield ExchangeResult(success=False, subtype=event_type.rsplit(".", 1)[-1])
				return
			elif event_type == "error":
				raise RuntimeError(getattr(event, "message", None) or "OpenAI stream error")
		raise RuntimeError("Response stream ended without a terminal event.")

	def _remember(self, event: Any) -> None:
		response = getattr(event, "response", None)
		response_id = getattr(response, "id", None)
		if response_id:
			self._previous_response_id = response_id
