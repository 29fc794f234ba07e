"""
Final Word Stage - guarded submission of the secret word

Rules:
  - Submission opens once the progress gate is unlocked
  - At most `max_attempts` guesses (2); locked after a correct guess or
    when attempts run out
  - Letters are revealed by slot as their levels clear, independent of guesses
"""
import logging
from typing import Dict, Iterable, List, Optional

from escape_room.core.progress import is_final_word_unlocked
from escape_room.errors import AccessError, InputError
from escape_room.models import (
    FinalWordAttempt, FinalWordRecord, LevelDefinition, TeamProgress
)


logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


def normalize_word(word: str) -> str:
    return (word or "").strip().upper()


def status_from_records(team_id: str, records: List[FinalWordRecord],
                        max_attempts: int = MAX_ATTEMPTS) -> FinalWordAttempt:
    """Rebuild final word state from persisted guesses (latest row wins)"""
    if not records:
        return FinalWordAttempt(team_id=team_id)

    latest = max(records, key=lambda r: (r.attempts_used, r.submitted_at))
    is_correct = any(r.is_correct for r in records)
    attempts_used = min(latest.attempts_used, max_attempts)
    return FinalWordAttempt(
        team_id=team_id,
        attempts_used=attempts_used,
        is_correct=is_correct,
        is_locked=is_correct or attempts_used >= max_attempts,
        submitted_at=latest.submitted_at,
    )


def reveal_slots(
    secret_word: str,
    levels: Iterable[LevelDefinition],
    cleared_levels: Iterable[int],
) -> List[Optional[str]]:
    """
    Letter board for the secret word

    Returns one entry per character: the letter if the level owning that
    slot is cleared, else None.
    """
    cleared = set(cleared_levels)
    slots: List[Optional[str]] = [None] * len(secret_word)
    for level in levels:
        if level.level_number in cleared and level.slot_position < len(secret_word):
            slots[level.slot_position] = secret_word[level.slot_position]
    return slots


class FinalWordStage:
    """Final word guesses for one team"""

    def __init__(self, secret_word: str, attempt: FinalWordAttempt,
                 max_attempts: int = MAX_ATTEMPTS):
        self.secret_word = normalize_word(secret_word)
        self.attempt = attempt
        self.max_attempts = max_attempts

    @property
    def is_locked(self) -> bool:
        return self.attempt.is_locked

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempt.attempts_used)

    def submit_guess(self, word: str, progress: TeamProgress, now: float) -> FinalWordAttempt:
        """
        Submit one guess

        Args:
            word: Guessed word (case/whitespace-insensitive)
            progress: Team progress (gates the stage)
            now: Submission timestamp

        Returns:
            Updated FinalWordAttempt

        Raises:
            AccessError: Stage not unlocked, or already locked
            InputError: Blank guess
        """
        if self.attempt.is_locked:
            raise AccessError("Final word is locked")
        if not is_final_word_unlocked(progress):
            raise AccessError("All levels must be cleared before submitting the final word")

        guess = normalize_word(word)
        if not guess:
            raise InputError("Final word is required")

        attempts_used = self.attempt.attempts_used + 1
        is_correct = guess == self.secret_word
        self.attempt = FinalWordAttempt(
            team_id=self.attempt.team_id,
            attempts_used=attempts_used,
            is_correct=is_correct,
            is_locked=is_correct or attempts_used >= self.max_attempts,
            submitted_at=now,
        )

        logger.info(
            f"{'✅' if is_correct else '❌'} Team {self.attempt.team_id} final word guess "
            f"{attempts_used}/{self.max_attempts}{' | LOCKED' if self.attempt.is_locked else ''}"
        )
        return self.attempt

    def status(self) -> Dict:
        return {
            "attempts_used": self.attempt.attempts_used,
            "attempts_remaining": self.attempts_remaining,
            "is_correct": self.attempt.is_correct,
            "is_locked": self.attempt.is_locked,
            "word_length": len(self.secret_word),
        }
