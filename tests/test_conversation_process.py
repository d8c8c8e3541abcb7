from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from models.agent_config import AgentConfig
from models.agent_events import AssistantText, ExchangeResult, ToolUse
from models.agent_session_record import TranscriptMessage
from services.agent.conversation_process import OpenAIConversationProcess


def _event(type_, **fields):
    return SimpleNamespace(type=type_, **fields)


async def _stream(events):
    for event in events:
        yield event


async def _turns(*items):
    for item in items:
        yield item


def _client(*streams):
    client = MagicMock()
    client.responses.create = AsyncMock(side_effect=[_stream(events) for events in streams])
    return client


@pytest.mark.asyncio
async def test_stream_events_are_mapped_and_turns_chained():
    first = [
        _event("response.created"),
        _event(
            "response.output_item.done",
            item=SimpleNamespace(type="web_search_call", action=SimpleNamespace(query="solar trends")),
        ),
        _event("response.output_text.delta", delta="Solar "),
        _event("response.output_text.delta", delta="is growing."),
        _event("response.completed", response=SimpleNamespace(id="resp_1")),
    ]
    second = [
        _event("response.output_item.done", item=SimpleNamespace(type="function_call", name="lookup", arguments='{"id": 3}')),
        _event("response.completed", response=SimpleNamespace(id="resp_2")),
    ]
    client = _client(first, second)
    process = OpenAIConversationProcess(client, AgentConfig(system_prompt="Be brief."), model="test-model")

    events = [event async for event in process.run(_turns("one", "two"))]

    assert events == [
        ToolUse(name="web_search", input={"query": "solar trends"}),
        AssistantText("Solar "),
        AssistantText("is growing."),
        ExchangeResult(success=True),
        ToolUse(name="lookup", input={"id": 3}),
        ExchangeResult(success=True),
    ]
    first_call, second_call = client.responses.create.await_args_list
    assert first_call.kwargs["model"] == "test-model"
    assert first_call.kwargs["instructions"] == "Be brief."
    assert first_call.kwargs["tools"] == [{"type": "web_search"}]
    assert first_call.kwargs["stream"] is True
    assert "previous_response_id" not in first_call.kwargs
    assert second_call.kwargs["previous_response_id"] == "resp_1"


@pytest.mark.asyncio
async def test_stored_history_is_sent_once_before_the_first_turn():
    history = [TranscriptMessage("user", "Plan a deck on solar"), TranscriptMessage("assistant", "Sure, how many slides?")]
    client = _client(
        [_event("response.completed", response=SimpleNamespace(id="resp_1"))],
        [_event("response.completed", response=SimpleNamespace(id="resp_2"))],
    )
    process = OpenAIConversationProcess(client, AgentConfig(history=history))

    [event async for event in process.run(_turns("Five", "Make it six"))]

    first_call, second_call = client.responses.create.await_args_list
    assert first_call.kwargs["input"] == [
        {"type": "message", "role": "user", "content": "Plan a deck on solar"},
        {"type": "message", "role": "assistant", "content": "Sure, how many slides?"},
        {"type": "message", "role": "user", "content": [{"type": "input_text", "text": "Five"}]},
    ]
    assert second_call.kwargs["previous_response_id"] == "resp_1"
    assert second_call.kwargs["input"] == [
        {"type": "message", "role": "user", "content": [{"type": "input_text", "text": "Make it six"}]},
    ]


@pytest.mark.asyncio
async def test_incomplete_response_is_an_unsuccessful_result():
    client = _client([_event("response.incomplete", response=SimpleNamespace(id="resp_1"))])
    process = OpenAIConversationProcess(client, AgentConfig(allowed_tools=[]))

    events = [event async for event in process.run(_turns("one"))]

    assert events == [ExchangeResult(success=False, subtype="incomplete")]
    assert "tools" not in client.responses.create.await_args.kwargs


@pytest.mark.asyncio
async def test_turn_limit_is_enforced_without_calling_the_api():
    client = _client([_event("response.completed", response=SimpleNamespace(id="resp_1"))])
    process = OpenAIConversationProcess(client, AgentConfig(max_turns=1))

    events = [event async for event in process.run(_turns("one", "two"))]

    assert events == [ExchangeResult(success=True), ExchangeResult(success=False, subtype="error_max_turns")]
    assert client.responses.create.await_count == 1


@pytest.mark.asyncio
async def test_stream_errors_propagate():
    client = _client([_event("error", message="rate limited")])
    process = OpenAIConversationProcess(client)

    with pytest.raises(RuntimeError, match="rate limited"):
        [event async for event in process.run(_turns("one"))]


@pytest.mark.asyncio
async def test_stream_without_terminal_event_is_a_fault():
    client = _client([_event("response.output_text.delta", delta="partial")])
    process = OpenAIConversationProcess(client)

    with pytest.raises(RuntimeError, match="terminal event"):
        [event async for event in process.run(_turns("one"))]


def test_client_is_required():
    with pytest.raises(ValueError):
        OpenAIConversationProcess(None)
