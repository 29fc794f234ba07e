"""Login/logout and session lookup"""
import logging
import uuid
from typing import Dict, Optional

from escape_room import state
from escape_room.services.game_session import GameSession


logger = logging.getLogger(__name__)


def login(team_id: str, password: str, previous_token: Optional[str] = None) -> Dict[str, str]:
    """
    Authenticate and bind a GameSession to a fresh token

    A previous token presented by the caller is discarded (team switch).
    A team that logs in again keeps its live session under the new token.

    Raises:
        InputError, AuthError: From the credential store
    """
    team = state.CREDENTIALS.authenticate(team_id, password)
    team_id = team["team_id"]

    if previous_token and previous_token in state.SESSIONS:
        previous = state.SESSIONS[previous_token]
        if previous.team_id != team_id:
            logout(previous_token)

    session = None
    old_token = state.TEAM_INDEX.get(team_id)
    if old_token:
        session = state.SESSIONS.pop(old_token, None)

    if session is None:
        session = GameSession(
            team_id=team_id,
            team_name=team["team_name"],
            config=state.GAME_CONFIG,
            store=state.STORE,
            clock=state.CLOCK,
        )

    token = uuid.uuid4().hex
    state.SESSIONS[token] = session
    state.TEAM_INDEX[team_id] = token
    logger.info(f"🔓 Team {team_id} logged in")

    return {"session_token": token, "team_id": team_id, "team_name": team["team_name"]}


def logout(token: str) -> bool:
    session = state.SESSIONS.pop(token, None)
    if session is None:
        return False
    if state.TEAM_INDEX.get(session.team_id) == token:
        del state.TEAM_INDEX[session.team_id]
    logger.info(f"🔒 Team {session.team_id} logged out")
    return True


def get_session(token: str) -> Optional[GameSession]:
    return state.SESSIONS.get(token)


def reset_sessions() -> int:
    """Drop every session (testing only)"""
    count = len(state.SESSIONS)
    state.SESSIONS.clear()
    state.TEAM_INDEX.clear()
    return count
