"""
Final word endpoints
"""
from fastapi import APIRouter, Depends

from escape_room.api.deps import current_session, text_field, to_http_error
from escape_room.errors import GameError
from escape_room.services.game_session import GameSession


router = APIRouter(prefix="/final-word", tags=["final-word"])


@router.get("")
async def final_word_status(session: GameSession = Depends(current_session)):
    return session.final_word_status()


@router.post("")
async def submit_final_word(payload: dict, session: GameSession = Depends(current_session)):
    """
    Submit a final word guess (2 attempts max)

    Request:
        {"word": "ELEVEN"}
    """
    try:
        result = session.submit_final_word_guess(text_field(payload, "word"))
    except GameError as exc:
        raise to_http_error(exc) from exc

    if result["is_correct"]:
        message = "Correct! Final word accepted."
    elif result["is_locked"]:
        message = "No attempts remaining. Final word locked."
    else:
        message = f"Incorrect guess. You have {result['attempts_remaining']} attempt left."
    return {**result, "message": message}
