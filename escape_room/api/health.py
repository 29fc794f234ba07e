"""
Health check endpoint
"""
from fastapi import APIRouter

from escape_room import state


router = APIRouter(tags=["health"])


@router.get("/")
async def health_check():
    """Health check endpoint"""
    config = state.GAME_CONFIG
    return {
        "status": "ok",
        "message": "Escape Room Engine - Round 1",
        "version": "1.0.0",
        "total_levels": len(config.levels) if config else 0,
        "active_sessions": len(state.SESSIONS),
        "time_authority_degraded": state.CLOCK.degraded,
    }
