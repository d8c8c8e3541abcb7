"""FastAPI routes that stream agent replies as server-sent events."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from controllers.agent_chat_controller import stream_chat, stream_outline, stream_slides
from routes.dependencies import current_user_id

router = APIRouter(prefix="/api/agent", tags=["agent-chat"])


class UploadedFile(BaseModel):
	name: str
	content: str
	type: str = "text/plain"
	size: Optional[int] = None


class ChatPayload(BaseModel):
	message: str = ""
	sessionId: str = ""
	files: List[UploadedFile] = []


class OutlinePayload(BaseModel):
	topic: str
	numberOfSlides: int = Field(default=10, ge=1, le=50)
	language: str = "English"
	enableWebSearch: bool = False
	sessionId: str


class SlidesPayload(BaseModel):
	outline: List[str]
	title: str
	language: str = "English"
	sessionId: str


@router.post("/chat")
async def chat_route(request: Request, payload: ChatPayload, user_id: str = Depends(current_user_id)):
	"""Send one user turn to the session's agent and stream the reply."""
	try:
		return await stream_chat(request, user_id, payload.sessionId, payload.message, payload.files)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=f"Failed to process chat: {exc}")


@router.post("/outline")
async def outline_route(request: Request, payload: OutlinePayload, user_id: str = Depends(current_user_id)):
	"""Stream a generated outline and store its slide sections on the session."""
	try:
		return await stream_outline(
			request,
			user_id,
			payload.sessionId,
			payload.topic,
			payload.numberOfSlides,
			payload.language,
			payload.enableWebSearch,
		)
	except HTTPException:
		raise
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/slides")
async def slides_route(request: Request, payload: SlidesPayload, user_id: str = Depends(current_user_id)):
	"""Stream slide XML generated from an outline and store it on the session."""
	try:
		return await stream_slides(
			request, user_id, payload.sessionId, payload.outline, payload.title, payload.language
		)
	except HTTPException:
		raise
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
