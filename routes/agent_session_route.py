"""FastAPI routes for persisted agent sessions."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from controllers.agent_session_controller import (
	create_session,
	delete_session,
	get_session,
	list_sessions,
	update_session,
)
from routes.dependencies import current_user_id

router = APIRouter(prefix="/api/agent/session", tags=["agent-session"])


class CreatePayload(BaseModel):
	title: Optional[str] = None


class UpdatePayload(BaseModel):
	title: Optional[str] = None
	status: Optional[Literal["active", "completed", "archived"]] = None


@router.post("")
async def create_session_route(request: Request, payload: CreatePayload, user_id: str = Depends(current_user_id)):
	try:
		return await create_session(request, user_id, payload.title)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("")
async def list_sessions_route(request: Request, user_id: str = Depends(current_user_id)):
	try:
		return await list_sessions(request, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str, user_id: str = Depends(current_user_id)):
	try:
		return await get_session(request, session_id, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.patch("/{session_id}")
async def update_session_route(
	request: Request,
	session_id: str,
	payload: UpdatePayload,
	user_id: str = Depends(current_user_id),
):
	try:
		return await update_session(request, session_id, user_id, payload.title, payload.status)
	except HTTPException:
		raise
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def delete_session_route(request: Request, session_id: str, user_id: str = Depends(current_user_id)):
	try:
		return await delete_session(request, session_id, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
