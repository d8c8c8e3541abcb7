"""Events emitted by a running agent conversation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Union


@dataclass(frozen=True)
class AssistantText:
	"""Partial or full assistant text."""

	content: str
	kind: str = field(default="assistant_text", init=False)

	def to_payload(self) -> Dict[str, Any]:
		return {"type": "assistant_message", "content": self.content}


@dataclass(frozen=True)
class ToolUse:
	"""A capability invoked by the assistant while answering."""

	name: str
	input: Dict[str, Any] = field(default_factory=dict)
	kind: str = field(default="tool_use", init=False)

	def to_payload(self) -> Dict[str, Any]:
		return {"type": "tool_use", "toolName": self.name, "toolInput": self.input}


@dataclass(frozen=True)
class ExchangeResult:
	"""Terminal event for a completed exchange."""

	success: bool
	subtype: str = "success"
	kind: str = field(default="result", init=False)

	def to_payload(self) -> Dict[str, Any]:
		return {"type": "result", "success": self.success}


@dataclass(frozen=True)
class ExchangeError:
	"""Terminal event for an exchange that could not complete."""

	message: str
	kind: str = field(default="error", init=False)

	def to_payload(self) -> Dict[str, Any]:
		return {"type": "error", "content": self.message or "Unknown error"}


AgentEvent = Union[AssistantText, ToolUse, ExchangeResult, ExchangeError]

# Listeners are invoked synchronously by the session pump, one event at a time.
SessionListener = Callable[[AgentEvent], None]
