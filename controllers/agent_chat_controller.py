"""Controllers that stream agent exchanges back to the client."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from fastapi import HTTPException, Request
from fastapi.responses import StreamingResponse

from controllers.agent_session_controller import agent_service, require_owned_session, session_dal
from models.agent_session_record import DEFAULT_SESSION_TITLE, AgentSessionRecord
from services.agent.outline_parser import parse_outline
from services.agent.prompts import outline_generation_prompt, slides_generation_prompt
from services.agent.stream_adapter import AgentStreamAdapter, CompletionHook

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def compose_message(message: str, files: Optional[Sequence[object]]) -> str:
	"""Append the text of uploaded files to the user's turn.

	Each file needs `name` and `content` attributes (see routes.agent_chat_route.UploadedFile).
	"""
	if not files:
		return message
	files_text = "\n\n".join(f"File: {f.name}\nContent:\n{f.content}" for f in files)
	return f"{message}\n\nUploaded files:\n{files_text}"


def _ensure_enabled(request: Request) -> None:
	settings = getattr(request.app.state, "agent_settings", None)
	if settings is not None and not settings.enabled:
		raise HTTPException(status_code=503, detail="Agent mode is disabled.")


def _start_stream(
	request: Request,
	record: AgentSessionRecord,
	user_message: str,
	full_message: str,
	on_complete: Optional[CompletionHook] = None,
) -> StreamingResponse:
	agent = agent_service(request).get_or_create_session(record.session_id, history=record.messages)
	adapter = AgentStreamAdapter(
		agent,
		session_dal(request),
		session_id=record.session_id,
		user_id=record.user_id,
		history=record.messages,
		user_message=user_message,
		full_message=full_message,
		on_complete=on_complete,
	)
	return StreamingResponse(adapter.stream(), media_type="text/event-stream", headers=SSE_HEADERS)


async def stream_chat(
	request: Request,
	user_id: str,
	session_id: str,
	message: str,
	files: Optional[Sequence[object]] = None,
) -> StreamingResponse:
	"""Validate the request and stream the agent's reply to one user turn."""
	if not message or not session_id:
		raise HTTPException(status_code=400, detail="Missing required fields: message, sessionId")
	_ensure_enabled(request)
	record = await require_owned_session(request, session_id, user_id)
	return _start_stream(request, record, message, compose_message(message, files))


async def stream_outline(
	request: Request,
	user_id: str,
	session_id: str,
	topic: str,
	number_of_slides: int,
	language: str,
	enable_web_search: bool = False,
) -> StreamingResponse:
	"""Ask the agent for an outline and save its slide sections when done.

	A session still carrying the default title is renamed after the outline.
	"""
	if not topic.strip():
		raise ValueError("Topic is required.")
	_ensure_enabled(request)
	record = await require_owned_session(request, session_id, user_id)
	dal = session_dal(request)

	async def save_outline(reply: str) -> None:
		outline_title, sections = parse_outline(reply)
		if sections:
			await dal.save_outline(session_id, user_id, sections)
		if outline_title and record.title == DEFAULT_SESSION_TITLE:
			await dal.update_title(session_id, user_id, outline_title)

	prompt = outline_generation_prompt(topic, number_of_slides, language, enable_web_search)
	return _start_stream(request, record, prompt, prompt, on_complete=save_outline)


async def stream_slides(
	request: Request,
	user_id: str,
	session_id: str,
	outline: Iterable[str],
	title: str,
	language: str,
) -> StreamingResponse:
	"""Ask the agent for slide XML from an outline and save it when done."""
	outline_items: List[str] = [item for item in outline if item and item.strip()]
	if not outline_items:
		raise ValueError("Outline must contain at least one section.")
	_ensure_enabled(request)
	record = await require_owned_session(request, session_id, user_id)
	dal = session_dal(request)

	async def save_slides(reply: str) -> None:
		await dal.save_slides(session_id, user_id, {"title": title, "language": language, "xml": reply})

	prompt = slides_generation_prompt(outline_items, title, language)
	return _start_stream(request, record, prompt, prompt, on_complete=save_slides)
