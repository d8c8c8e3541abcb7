"""Test doubles for the conversation process and SSE helpers."""

import asyncio
import json
from typing import Callable, List, Optional

from models.agent_config import AgentConfig
from models.agent_events import AgentEvent, AssistantText, ExchangeError, ExchangeResult
from services.agent.agent_service import AgentService

USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}


def is_terminal(event: AgentEvent) -> bool:
    return isinstance(event, (ExchangeResult, ExchangeError))


def echo_reply(turn: str) -> List[AgentEvent]:
    return [AssistantText("Hi! "), AssistantText(f"You said: {turn}"), ExchangeResult(success=True)]


class ScriptedProcess:
    """Stand-in conversation process that answers each turn from a script.

    When `gate` is set, terminal events wait for it, which keeps an exchange
    in flight for as long as a test needs.
    """

    def __init__(
        self,
        reply: Callable[[str], List[AgentEvent]] = echo_reply,
        *,
        fail_on_start: bool = False,
        fail_on_turn: bool = False,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.reply = reply
        self.fail_on_start = fail_on_start
        self.fail_on_turn = fail_on_turn
        self.gate = gate
        self.turns: List[str] = []

    async def run(self, turns):
        if self.fail_on_start:
            raise RuntimeError("process crashed")
        async for turn in turns:
            self.turns.append(turn)
            if self.fail_on_turn:
                raise RuntimeError("model unavailable")
            for event in self.reply(turn):
                if self.gate is not None and is_terminal(event):
                    await self.gate.wait()
                await asyncio.sleep(0)
                yield event


class ProcessFactory:
    """Process factory that counts constructions; kwargs are read per call."""

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.created: List[ScriptedProcess] = []
        self.configs: List[AgentConfig] = []

    def __call__(self, config) -> ScriptedProcess:
        self.configs.append(config)
        process = ScriptedProcess(**self.kwargs)
        self.created.append(process)
        return process


class Recorder:
    """Listener that records events and signals on terminal ones."""

    def __init__(self) -> None:
        self.events: List[AgentEvent] = []
        self.done = asyncio.Event()

    def __call__(self, event: AgentEvent) -> None:
        self.events.append(event)
        if is_terminal(event):
            self.done.set()


def parse_sse(body: str) -> List[object]:
    """Split an SSE body into decoded payloads; the DONE sentinel stays a string."""
    records: List[object] = []
    for chunk in body.split("\n\n"):
        if not chunk.strip():
            continue
        assert chunk.startswith("data: ")
        data = chunk[len("data: "):]
        records.append(data if data == "[DONE]" else json.loads(data))
    return records


async def shutdown_service(service: AgentService) -> None:
    """Close every session and let the pumps finish."""
    tasks = [service.get_session(sid).pump_task for sid in service.session_ids()]
    service.cleanup()
    if tasks:
        await asyncio.wait(tasks, timeout=1)
