"""Team login/logout endpoints"""
from typing import Optional

from fastapi import APIRouter, Header, HTTPException

from escape_room.api.deps import text_field, to_http_error
from escape_room.errors import GameError
from escape_room.services.session_registry import login, logout


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login_endpoint(payload: dict, x_session_token: Optional[str] = Header(default=None)):
    """
    Authenticate a team

    Request:
        {"team_id": "TEAM001", "password": "..."}
    """
    team_id = text_field(payload, "team_id") or text_field(payload, "teamId")
    password = text_field(payload, "password")
    try:
        info = login(team_id, password, previous_token=x_session_token)
    except GameError as exc:
        raise to_http_error(exc) from exc
    return {
        **info,
        "message": "Logged in. Send session_token in the X-Session-Token header."
    }


@router.post("/logout")
async def logout_endpoint(x_session_token: Optional[str] = Header(default=None)):
    if not x_session_token or not logout(x_session_token):
        raise HTTPException(status_code=401, detail="Invalid or expired session token")
    return {"success": True}
