"""Persisted agent session lifecycle helpers."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from dal.agent_session_dal import AgentSessionDAL
from models.agent_session_record import AgentSessionRecord
from services.agent.agent_service import AgentService


def session_dal(request: Request) -> AgentSessionDAL:
	"""Return a DAL bound to the shared database initializer."""
	db_initializer = getattr(request.app.state, "db_initializer", None)
	if db_initializer is None:
		raise HTTPException(status_code=500, detail="Database not initialized.")
	return AgentSessionDAL(db_initializer)


def agent_service(request: Request) -> AgentService:
	"""Return the application's agent session registry."""
	service = getattr(request.app.state, "agent_service", None)
	if service is None:
		raise HTTPException(status_code=500, detail="Agent service unavailable.")
	return service


async def require_owned_session(request: Request, session_id: str, user_id: str) -> AgentSessionRecord:
	"""Return the session or raise 404 when it is missing or owned by someone else."""
	record = await session_dal(request).get_session(session_id, user_id)
	if record is None:
		raise HTTPException(status_code=404, detail="Session not found")
	return record


async def create_session(request: Request, user_id: str, title: Optional[str]) -> Dict[str, Any]:
	"""Create a persisted session for the user."""
	record = await session_dal(request).create_session(user_id, (title or "").strip() or None)
	return {"session": record.to_dict(), "message": "Session created successfully"}


async def list_sessions(request: Request, user_id: str) -> Dict[str, Any]:
	"""Return the user's sessions, most recent activity first."""
	records = await session_dal(request).list_sessions(user_id)
	return {"sessions": [record.to_dict() for record in records], "count": len(records)}


async def get_session(request: Request, session_id: str, user_id: str) -> Dict[str, Any]:
	record = await require_owned_session(request, session_id, user_id)
	return {"session": record.to_dict()}


async def update_session(
	request: Request,
	session_id: str,
	user_id: str,
	title: Optional[str] = None,
	status: Optional[str] = None,
) -> Dict[str, Any]:
	"""Apply title and/or status changes and return the refreshed session."""
	await require_owned_session(request, session_id, user_id)
	dal = session_dal(request)
	if title and title.strip():
		await dal.update_title(session_id, user_id, title.strip())
	if status:
		await dal.update_status(session_id, user_id, status)
	record = await require_owned_session(request, session_id, user_id)
	return {"session": record.to_dict(), "message": "Session updated successfully"}


async def delete_session(request: Request, session_id: str, user_id: str) -> Dict[str, Any]:
	"""Delete the persisted session and tear down its live agent, if any."""
	await require_owned_session(request, session_id, user_id)
	await session_dal(request).delete_session(session_id, user_id)
	agent_service(request).close_session(session_id)
	return {"message": "Session deleted successfully"}
