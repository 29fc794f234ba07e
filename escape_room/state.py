"""
Global application state
Process-wide collaborators shared by all routers

Per-team game state never lives here: it is owned by the GameSession
objects held in SESSIONS.
"""
from typing import Dict, Optional

from escape_room.core.timer import TimeAuthority
from escape_room.models import GameConfig
from escape_room.services.credentials import CredentialStore
from escape_room.services.persistence import AttemptStore

# Game definition, loaded at startup
GAME_CONFIG: Optional[GameConfig] = None

# Team registry (read-only)
CREDENTIALS: CredentialStore = CredentialStore()

# Append-only attempt store shared by all teams
STORE: AttemptStore = AttemptStore()

# Trusted clock (falls back to local time)
CLOCK: TimeAuthority = TimeAuthority()

# Active sessions: session token -> GameSession
SESSIONS: Dict[str, "GameSession"] = {}

# Convenience index from team_id -> session token
TEAM_INDEX: Dict[str, str] = {}
