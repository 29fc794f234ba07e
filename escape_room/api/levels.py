"""
Level endpoints: progress, start, answer, timer, forced completion
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from escape_room.api.deps import current_session, text_field, to_http_error
from escape_room.errors import GameError
from escape_room.services.game_session import GameSession


router = APIRouter(tags=["levels"])
logger = logging.getLogger(__name__)


@router.get("/progress")
async def get_progress(session: GameSession = Depends(current_session)):
    """Team progress snapshot (scores stay hidden)"""
    return session.progress_snapshot()


@router.post("/levels/{level_number}/start")
async def start_level(level_number: int, session: GameSession = Depends(current_session)):
    try:
        level_session = session.start_level(level_number)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Level {level_number} not found")
    except GameError as exc:
        logger.info(f"🚫 Team {session.team_id} denied level {level_number}: {exc}")
        raise to_http_error(exc) from exc
    return level_session.view()


@router.get("/levels/current")
async def current_level(session: GameSession = Depends(current_session)):
    view = session.current_level_view()
    if view is None:
        raise HTTPException(status_code=404, detail="No level in progress")
    return view


@router.post("/levels/current/draft")
async def update_draft(payload: dict, session: GameSession = Depends(current_session)):
    try:
        session.update_draft(text_field(payload, "answer"))
    except GameError as exc:
        raise to_http_error(exc) from exc
    return {"success": True}


@router.post("/levels/current/answer")
async def submit_answer(payload: dict, session: GameSession = Depends(current_session)):
    """
    Submit the answer for the current question

    Request:
        {"question_index": 0, "answer": "Git"}
    """
    question_index = payload.get("question_index")
    if isinstance(question_index, bool) or not isinstance(question_index, int):
        raise HTTPException(status_code=400, detail="question_index is required")

    try:
        result = session.submit_answer(question_index, text_field(payload, "answer"))
    except GameError as exc:
        raise to_http_error(exc) from exc

    return {
        "is_correct": result.is_correct,
        "timed_out": result.timed_out,
        "level": session.current_level_view(),
    }


@router.post("/levels/current/tick")
async def tick(session: GameSession = Depends(current_session)):
    """Poll the question timer (fires the timeout submission when it runs out)"""
    try:
        timer = session.tick()
    except GameError as exc:
        raise to_http_error(exc) from exc
    return {"timer": timer, "level": session.current_level_view()}


@router.post("/levels/current/force-complete")
async def force_complete(session: GameSession = Depends(current_session)):
    """Violation-triggered auto-submit; repeat calls are no-ops"""
    attempt = session.force_complete_level()
    return {
        "outcome": attempt.outcome.value if attempt else None,
        "level": session.current_level_view(),
    }


@router.post("/levels/current/leave")
async def leave_level(session: GameSession = Depends(current_session)):
    checkpoint = session.leave_level()
    return {"checkpoint_saved": checkpoint is not None}
