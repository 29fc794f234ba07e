"""Team credential store (read-only)"""
import logging
from typing import Dict, Iterable

from escape_room.errors import AuthError, InputError
from escape_room.models import TeamInfo


logger = logging.getLogger(__name__)


class CredentialStore:
    def __init__(self, teams: Iterable[TeamInfo] = ()):
        self._teams: Dict[str, TeamInfo] = {t.team_id: t for t in teams}

    def authenticate(self, team_id: str, password: str) -> Dict[str, str]:
        team_id = (team_id or "").strip()
        password = (password or "").strip()
        if not team_id:
            raise InputError("Team ID is required")
        if not password:
            raise InputError("Password is required")

        team = self._teams.get(team_id)
        if team is None or team.password != password:
            logger.info(f"🔒 Failed login for team id {team_id}")
            raise AuthError("Invalid Team ID or Password")
        if not team.is_active:
            raise AuthError("Team account is inactive. Contact administrator.")

        return {"team_id": team.team_id, "team_name": team.team_name}

    def team_names(self) -> Dict[str, str]:
        return {team_id: t.team_name for team_id, t in self._teams.items()}
