"""
Progress State Machine - level access, outcomes, letters and final-word gate

Rules:
  - Level 1 is always accessible; level n > 1 is accessible once level n-1
    has been ATTEMPTED (cleared or failed)
  - attempted = cleared ∪ failed, cleared ∩ failed = ∅
  - Letters unlock only on CLEARED levels
  - Final word unlocks when ALL levels are CLEARED
  - Each level accepts exactly one terminal write

All functions are pure: record_level_attempt returns a new TeamProgress.
"""
import logging
from typing import Dict, List, Optional

from escape_room.errors import AlreadyAttemptedError
from escape_room.models import (
    LevelAttemptRecord, LevelDefinition, LevelStatus, TeamProgress
)


logger = logging.getLogger(__name__)

ALL_LEVELS = (1, 2, 3, 4, 5)


def new_progress(team_id: str) -> TeamProgress:
    return TeamProgress(team_id=team_id)


def is_level_accessible(progress: TeamProgress, level_number: int) -> bool:
    """Accessibility depends only on the previous level being attempted"""
    if level_number not in ALL_LEVELS:
        return False
    if level_number == 1:
        return True
    return (level_number - 1) in progress.attempted_levels


def get_level_status(progress: TeamProgress, level_number: int) -> LevelStatus:
    if level_number in progress.cleared_levels:
        return LevelStatus.CLEARED
    if level_number in progress.failed_levels:
        return LevelStatus.FAILED
    if level_number in progress.attempted_levels:
        return LevelStatus.ATTEMPTED
    if is_level_accessible(progress, level_number):
        return LevelStatus.UNLOCKED
    return LevelStatus.LOCKED


def record_level_attempt(
    progress: TeamProgress,
    level: LevelDefinition,
    passed: bool,
    score: int,
) -> TeamProgress:
    """
    Record the terminal outcome of a level

    Args:
        progress: Current progress (left untouched)
        level: Level definition (supplies the letter to unlock)
        passed: Level cleared
        score: Total level score (hidden from the UI)

    Returns:
        Updated TeamProgress

    Raises:
        AlreadyAttemptedError: The level already has a terminal outcome
    """
    n = level.level_number
    if n in progress.attempted_levels:
        raise AlreadyAttemptedError(n)

    updated = progress.model_copy(deep=True)
    updated.attempted_levels.add(n)
    updated.hidden_scores[n] = score

    if passed:
        updated.cleared_levels.add(n)
        updated.failed_levels.discard(n)
        updated.unlocked_letters.add(level.letter_to_unlock)
    else:
        updated.failed_levels.add(n)
        updated.cleared_levels.discard(n)

    return updated


def is_final_word_unlocked(progress: TeamProgress) -> bool:
    """Final word requires every level CLEARED (not merely attempted)"""
    return all(n in progress.cleared_levels for n in ALL_LEVELS)


def next_level(progress: TeamProgress) -> Optional[int]:
    """Lowest level number not yet attempted"""
    for n in ALL_LEVELS:
        if n not in progress.attempted_levels:
            return n
    return None


def total_score(progress: TeamProgress) -> int:
    return sum(progress.hidden_scores.values())


def cleared_score(progress: TeamProgress) -> int:
    return sum(
        score for n, score in progress.hidden_scores.items()
        if n in progress.cleared_levels
    )


def from_records(
    team_id: str,
    records: List[LevelAttemptRecord],
    levels: Dict[int, LevelDefinition],
) -> TeamProgress:
    """
    Rebuild progress from persisted attempt rows (oldest first)

    Duplicate rows for a level keep the first one. Rows for levels missing
    from the game definition are ignored.
    """
    progress = new_progress(team_id)

    for record in records:
        level = levels.get(record.level_number)
        if level is None:
            logger.warning(f"⚠️ Team {team_id}: ignoring record for unknown level {record.level_number}")
            continue
        try:
            progress = record_level_attempt(progress, level, record.cleared, record.score)
        except AlreadyAttemptedError:
            logger.warning(
                f"⚠️ Team {team_id}: duplicate attempt row for level {record.level_number} ignored"
            )

    return progress


def snapshot(progress: TeamProgress, include_scores: bool = False) -> Dict:
    """Serializable view of progress (scores stay hidden unless asked for)"""
    data = {
        "team_id": progress.team_id,
        "attempted_levels": sorted(progress.attempted_levels),
        "cleared_levels": sorted(progress.cleared_levels),
        "failed_levels": sorted(progress.failed_levels),
        "unlocked_letters": sorted(progress.unlocked_letters),
        "final_word_unlocked": is_final_word_unlocked(progress),
        "next_level": next_level(progress),
        "levels": {n: get_level_status(progress, n).value for n in ALL_LEVELS},
    }
    if include_scores:
        data["hidden_scores"] = dict(progress.hidden_scores)
        data["total_score"] = total_score(progress)
    return data
