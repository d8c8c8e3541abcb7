"""Request dependencies shared by the agent routers."""

from typing import Optional

from fastapi import Header, HTTPException


def current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
	"""Return the caller's user id from the X-User-Id header set by the auth proxy."""
	user_id = (x_user_id or "").strip()
	if not user_id:
		raise HTTPException(status_code=401, detail="Unauthorized")
	return user_id
