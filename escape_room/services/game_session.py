"""
Session-scoped game context for one authenticated team

Created on login, discarded on logout or team switch. Owns the team's
progress, the level in progress, per-level checkpoints, the final word stage
and event listeners. Persistence failures never block state transitions.
"""
import logging
from typing import Callable, Dict, List, Optional

from escape_room.core import progress as progress_core
from escape_room.core.final_word import FinalWordStage, reveal_slots, status_from_records
from escape_room.core.level_session import LevelSession
from escape_room.core.timer import TimeAuthority
from escape_room.errors import AccessError, AlreadyAttemptedError, PersistenceError
from escape_room.models import (
    Checkpoint, FinalWordAttempt, FinalWordRecord, GameConfig, GameEvent,
    LevelAttempt, LevelAttemptRecord, LevelDefinition, LevelOutcome,
    LevelStatus, Question, QuestionResult, TeamProgress
)
from escape_room.services.persistence import AttemptStore, write_with_retry


logger = logging.getLogger(__name__)

EventListener = Callable[[GameEvent], None]


class GameSession:
    """Game state and command surface for the currently authenticated team"""

    def __init__(
        self,
        team_id: str,
        team_name: str,
        config: GameConfig,
        store: AttemptStore,
        clock: TimeAuthority,
    ):
        self.team_id = team_id
        self.team_name = team_name
        self.config = config
        self.params = config.params
        self.store = store
        self.clock = clock

        self._levels: Dict[int, LevelDefinition] = config.levels_by_number()
        self._listeners: List[EventListener] = []
        self._checkpoints: Dict[int, Checkpoint] = {}
        self.current_level: Optional[LevelSession] = None
        self.last_attempt: Optional[LevelAttempt] = None

        self.progress: TeamProgress = progress_core.from_records(
            team_id, store.fetch_attempts(team_id), self._levels
        )
        self.final_word = FinalWordStage(
            config.secret_word,
            status_from_records(
                team_id,
                store.fetch_final_word_attempts(team_id),
                self.params.max_final_word_attempts,
            ),
            self.params.max_final_word_attempts,
        )
        logger.info(
            f"🎮 Session for team {team_id} | attempted={sorted(self.progress.attempted_levels)} "
            f"cleared={sorted(self.progress.cleared_levels)}"
        )

    # ==================== EVENTS ====================

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"❌ Event listener failed for {event.kind}: {e}", exc_info=True)

    # ==================== QUERIES ====================

    def get_level(self, level_number: int) -> LevelDefinition:
        level = self._levels.get(level_number)
        if level is None:
            raise KeyError(f"Level {level_number} not found")
        return level

    def get_level_status(self, level_number: int) -> LevelStatus:
        return progress_core.get_level_status(self.progress, level_number)

    def is_level_accessible(self, level_number: int) -> bool:
        return progress_core.is_level_accessible(self.progress, level_number)

    def progress_snapshot(self) -> Dict:
        data = progress_core.snapshot(self.progress)
        data["team_name"] = self.team_name
        data["in_progress_level"] = self.current_level.level_number if self.current_level else None
        data["revealed_slots"] = self.revealed_slots()
        return data

    def revealed_slots(self) -> List[Optional[str]]:
        return reveal_slots(self.config.secret_word, self.config.levels, self.progress.cleared_levels)

    def current_level_view(self) -> Optional[Dict]:
        if self.current_level is None:
            return None
        return self.current_level.view()

    def final_word_status(self) -> Dict:
        data = self.final_word.status()
        data["unlocked"] = progress_core.is_final_word_unlocked(self.progress)
        data["revealed_slots"] = self.revealed_slots()
        data["hint"] = self.config.final_word_hint
        return data

    # ==================== LEVEL COMMANDS ====================

    def start_level(self, level_number: int) -> LevelSession:
        """
        Open a level (or resume it from its checkpoint)

        Raises:
            KeyError: Unknown level
            AlreadyAttemptedError: Level already attempted
            AccessError: Level locked
        """
        level = self.get_level(level_number)
        status = self.get_level_status(level_number)
        if status in (LevelStatus.CLEARED, LevelStatus.FAILED, LevelStatus.ATTEMPTED):
            raise AlreadyAttemptedError(level_number)
        if status == LevelStatus.LOCKED:
            raise AccessError(f"Level {level_number} is locked")

        if self.current_level is not None:
            if self.current_level.level_number == level_number:
                return self.current_level
            self.leave_level()

        checkpoint = self._checkpoints.get(level_number)
        session = LevelSession(
            level,
            self.clock,
            self.params,
            on_complete=self._handle_level_complete,
            on_question_timeout=self._handle_question_timeout,
            checkpoint=checkpoint,
        )
        self.current_level = session
        if checkpoint:
            logger.info(f"↩️ Team {self.team_id} resuming level {level_number} at question {checkpoint.question_index + 1}")
        session.open()
        return session

    def leave_level(self) -> Optional[Checkpoint]:
        """Navigate away from the level in progress, keeping a checkpoint"""
        session = self.current_level
        if session is None:
            return None
        checkpoint = session.checkpoint()
        if checkpoint is not None:
            self._checkpoints[session.level_number] = checkpoint
        self.current_level = None
        return checkpoint

    def _require_level(self) -> LevelSession:
        if self.current_level is None:
            raise AccessError("No level in progress")
        return self.current_level

    def submit_answer(self, question_index: int, answer: str) -> QuestionResult:
        return self._require_level().submit_answer(question_index, answer)

    def update_draft(self, answer: str) -> None:
        self._require_level().set_draft(answer)

    def tick(self) -> Optional[Dict]:
        return self._require_level().tick()

    def force_complete_level(self) -> Optional[LevelAttempt]:
        """Violation-triggered completion; a no-op when nothing is in progress"""
        if self.current_level is None:
            return self.last_attempt
        return self.current_level.force_complete()

    def _handle_question_timeout(self, question: Question, result: QuestionResult) -> None:
        self._emit(GameEvent(
            kind="question_timeout",
            team_id=self.team_id,
            level_number=self.current_level.level_number if self.current_level else None,
            question_id=question.id,
        ))

    def _handle_level_complete(self, attempt: LevelAttempt) -> None:
        level = self.get_level(attempt.level_number)
        cleared = attempt.outcome == LevelOutcome.CLEARED

        # Local state first; the store can lag behind
        self.progress = progress_core.record_level_attempt(
            self.progress, level, cleared, attempt.total_score
        )
        self._checkpoints.pop(attempt.level_number, None)
        self.last_attempt = attempt

        record = LevelAttemptRecord(
            team_id=self.team_id,
            level_number=attempt.level_number,
            score=attempt.total_score,
            time_taken=attempt.total_time,
            cleared=cleared,
            letters_unlocked=[level.letter_to_unlock] if cleared else [],
            created_at=self.clock.now(),
        )
        try:
            write_with_retry(
                lambda: self.store.append_level_attempt(record),
                retries=self.params.persistence_retries,
                what=f"Level {attempt.level_number} attempt for team {self.team_id}",
            )
        except PersistenceError:
            attempt.persistence_failed = True

        self._emit(GameEvent(
            kind="level_terminal",
            team_id=self.team_id,
            level_number=attempt.level_number,
            outcome=attempt.outcome,
            detail={"forced": attempt.forced, "persistence_failed": attempt.persistence_failed},
        ))

    # ==================== FINAL WORD ====================

    def submit_final_word_guess(self, word: str) -> Dict:
        """
        Submit a final word guess

        Raises:
            AccessError: Stage not unlocked or already locked
            InputError: Blank guess
        """
        now = self.clock.now()
        attempt: FinalWordAttempt = self.final_word.submit_guess(word, self.progress, now)

        record = FinalWordRecord(
            team_id=self.team_id,
            word=word.strip().upper(),
            is_correct=attempt.is_correct,
            attempts_used=attempt.attempts_used,
            submitted_at=now,
        )
        persisted = True
        try:
            write_with_retry(
                lambda: self.store.append_final_word_attempt(record),
                retries=self.params.persistence_retries,
                what=f"Final word guess for team {self.team_id}",
            )
        except PersistenceError:
            persisted = False

        if attempt.is_locked:
            self._emit(GameEvent(
                kind="final_word_locked",
                team_id=self.team_id,
                detail={"is_correct": attempt.is_correct, "attempts_used": attempt.attempts_used},
            ))

        data = self.final_word.status()
        data["persisted"] = persisted
        return data
