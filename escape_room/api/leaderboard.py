"""
Leaderboard endpoint
"""
from fastapi import APIRouter

from escape_room import state
from escape_room.core.leaderboard import rank_teams


router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard")
async def get_leaderboard():
    """Top teams that solved the final word (recomputed on every call)"""
    limit = state.GAME_CONFIG.params.leaderboard_size if state.GAME_CONFIG else 7
    entries = rank_teams(
        state.STORE.all_level_attempts(),
        state.STORE.all_final_word_attempts(),
        limit=limit,
        team_names=state.CREDENTIALS.team_names(),
    )
    return {
        "teams": [entry.model_dump() for entry in entries],
        "total_teams": len(entries)
    }
