"""
Shared router helpers: session lookup and error translation
"""
from typing import Optional

from fastapi import Header, HTTPException

from escape_room.errors import (
    AccessError, AlreadyAttemptedError, AuthError, GameError, InputError
)
from escape_room.services.game_session import GameSession
from escape_room.services.session_registry import get_session


def current_session(x_session_token: Optional[str] = Header(default=None)) -> GameSession:
    if not x_session_token:
        raise HTTPException(status_code=401, detail="X-Session-Token header is required")
    session = get_session(x_session_token)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session token")
    return session


def to_http_error(exc: GameError) -> HTTPException:
    """Map engine errors onto HTTP status codes"""
    if isinstance(exc, InputError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, AuthError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, AlreadyAttemptedError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, AccessError):
        return HTTPException(status_code=403, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def text_field(payload: dict, key: str) -> str:
    """Read an optional string field from a JSON body (400 on any other type)"""
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{key} must be a string")
    return value
