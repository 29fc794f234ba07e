"""
Level Session - runs one level attempt

States:
  NOT_STARTED -> IN_PROGRESS -> COMPLETING -> TERMINAL

Flow:
  - Each question gets its own timer; an explicit submission or a timeout
    produces exactly one QuestionResult for it
  - The next question's timer starts after the display delay
  - After the last result (or a forced completion) the attempt is scored:
      correct_count >= clear_threshold -> CLEARED, else FAILED
  - Forced completion uses only the results gathered so far and is a
    no-op once TERMINAL
"""
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from escape_room.core import timer as timer_engine
from escape_room.core.evaluator import evaluate, is_blank
from escape_room.core.timer import QuestionTimer, TimeAuthority
from escape_room.errors import AccessError, InputError
from escape_room.models import (
    Checkpoint, GameParams, LevelAttempt, LevelDefinition, LevelOutcome,
    Modality, Question, QuestionResult
)


logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETING = "COMPLETING"
    TERMINAL = "TERMINAL"


def summarize(level: LevelDefinition, results: List[QuestionResult], forced: bool = False) -> LevelAttempt:
    """
    Aggregate results into a terminal LevelAttempt

    Unanswered questions are simply absent from `results` and count as
    incorrect.
    """
    correct_count = sum(1 for r in results if r.is_correct)
    outcome = LevelOutcome.CLEARED if correct_count >= level.clear_threshold else LevelOutcome.FAILED
    return LevelAttempt(
        level_number=level.level_number,
        results=list(results),
        outcome=outcome,
        total_score=sum(r.score for r in results),
        total_time=sum(r.time_taken_seconds for r in results),
        forced=forced,
    )


def question_view(question: Question) -> Dict:
    """Presentation view of a question (never includes the accepted answer)"""
    view = {
        "id": question.id,
        "modality": question.modality.value,
        "prompt": question.prompt,
        "options": list(question.options),
        "code": question.code,
        "cipher": question.cipher,
        "hint": question.hint,
        "points": question.points,
        "time_limit": question.time_limit_seconds,
    }
    if question.modality == Modality.CHARACTER_LOCK:
        view["answer_length"] = len(question.accepted_answer)
    return view


class LevelSession:
    """State machine for one team's attempt at one level"""

    def __init__(
        self,
        level: LevelDefinition,
        clock: TimeAuthority,
        params: Optional[GameParams] = None,
        on_complete: Optional[Callable[[LevelAttempt], None]] = None,
        on_question_timeout: Optional[Callable[[Question, QuestionResult], None]] = None,
        checkpoint: Optional[Checkpoint] = None,
    ):
        self.level = level
        self.clock = clock
        self.params = params or GameParams()
        self._on_complete = on_complete
        self._on_question_timeout = on_question_timeout

        self.state = SessionState.NOT_STARTED
        self.results: List[QuestionResult] = []
        self.attempt: Optional[LevelAttempt] = None
        self.draft_answer = ""
        self._timer: Optional[QuestionTimer] = None
        self._scheduled_at: Optional[float] = None  # Reading that deferred the current timer
        self._resume_timer_start: Optional[float] = None

        if checkpoint is not None:
            if checkpoint.level_number != level.level_number:
                raise ValueError(
                    f"Checkpoint for level {checkpoint.level_number} cannot resume level {level.level_number}"
                )
            self.results = list(checkpoint.results[:level.total_questions])
            self._resume_timer_start = checkpoint.timer_start

    # ==================== QUERIES ====================

    @property
    def level_number(self) -> int:
        return self.level.level_number

    @property
    def question_index(self) -> int:
        """Index of the question awaiting a result"""
        return len(self.results)

    @property
    def current_question(self) -> Optional[Question]:
        if self.state != SessionState.IN_PROGRESS or self.question_index >= self.level.total_questions:
            return None
        return self.level.questions[self.question_index]

    @property
    def is_terminal(self) -> bool:
        return self.state == SessionState.TERMINAL

    def view(self) -> Dict:
        now = self.clock.now()
        question = self.current_question
        return {
            "level_number": self.level_number,
            "state": self.state.value,
            "question_index": self.question_index,
            "total_questions": self.level.total_questions,
            "results": [r.model_dump() for r in self.results],
            "question": question_view(question) if question else None,
            "timer": self._timer.view(now) if self._timer and question else None,
            "tick_interval": self.params.tick_interval_seconds,
            "outcome": self.attempt.outcome.value if self.attempt else LevelOutcome.IN_PROGRESS.value,
        }

    def checkpoint(self) -> Optional[Checkpoint]:
        """Snapshot for resuming after navigating away (None unless IN_PROGRESS)"""
        if self.state != SessionState.IN_PROGRESS:
            return None
        return Checkpoint(
            level_number=self.level_number,
            question_index=self.question_index,
            results=list(self.results),
            timer_start=self._timer.state.start_time if self._timer else None,
        )

    # ==================== COMMANDS ====================

    def open(self) -> None:
        """NOT_STARTED -> IN_PROGRESS; starts (or resumes) the current question's timer"""
        if self.state != SessionState.NOT_STARTED:
            raise AccessError(f"Level {self.level_number} session already opened")

        self.state = SessionState.IN_PROGRESS
        if self.question_index >= self.level.total_questions:
            # Checkpoint already holds every result
            self._complete(forced=False)
            return

        now = self.clock.now()
        start_at = self._resume_timer_start
        if start_at is None:
            start_at = now
        self._start_timer(start_at, scheduled_at=now if start_at > now else None)
        logger.info(
            f"▶️ Level {self.level_number} opened at question "
            f"{self.question_index + 1}/{self.level.total_questions}"
        )

    def set_draft(self, answer: str) -> None:
        """Current (unsubmitted) answer; submitted as-is on timeout"""
        if self.state != SessionState.IN_PROGRESS:
            raise AccessError(f"Level {self.level_number} is not in progress")
        self.draft_answer = answer or ""

    def submit_answer(self, question_index: int, answer: str) -> QuestionResult:
        """
        Explicit submission for the current question

        Within the tolerance window past the time limit the answer is still
        accepted (time_taken = time_limit, no bonus). Beyond it the question
        has already timed out: the draft current at the limit is recorded,
        exactly as if the timer had been polled, and `answer` is ignored.

        A reading before the timer start is only rejected during the display
        delay that follows the previous submission; any other such reading
        is a clock anomaly and is scored without a bonus.

        Raises:
            AccessError: Level not in progress
            InputError: Blank answer, wrong question index, or question not yet shown
        """
        if self.state != SessionState.IN_PROGRESS:
            raise AccessError(f"Level {self.level_number} is not in progress")
        if question_index != self.question_index:
            raise InputError(
                f"Question {question_index} is not the current question ({self.question_index})"
            )
        if is_blank(answer):
            raise InputError("Answer is required")

        now = self.clock.now()
        if self._scheduled_at is not None and self._scheduled_at <= now < self._timer.state.start_time:
            raise InputError("Question is not open yet")

        question = self.current_question
        completion = self._timer.complete(now, self.params.tolerance_seconds)
        time_taken = completion.time_taken
        if time_taken > question.time_limit_seconds + self.params.tolerance_seconds:
            logger.warning(
                f"⚠️ Level {self.level_number} Q{question.id} answer arrived {time_taken}s in "
                f"(limit {question.time_limit_seconds}s); recording the timeout instead"
            )
            self._handle_timeout(self._timer.state)
            return self.results[-1]

        timed_out = time_taken >= question.time_limit_seconds
        if timed_out:
            time_taken = question.time_limit_seconds

        result = evaluate(
            question,
            answer,
            time_taken,
            timing_anomaly=not completion.is_plausible,
            timed_out=timed_out,
        )
        self._append(result)
        return result

    def tick(self) -> Optional[Dict]:
        """Poll the current timer; fires the timeout submission when it runs out"""
        if self.state != SessionState.IN_PROGRESS or self._timer is None:
            return None
        now = self.clock.now()
        self._timer.poll(now)
        if self._timer and self.state == SessionState.IN_PROGRESS:
            return self._timer.view(now)
        return None

    def restart_timer(self, question_index: int) -> None:
        """Restart the clock of a question that has no result yet"""
        if self.state != SessionState.IN_PROGRESS:
            raise AccessError(f"Level {self.level_number} is not in progress")
        if question_index != self.question_index:
            raise AccessError(f"Question {question_index} already has a result")
        self._start_timer(self.clock.now())

    def force_complete(self) -> Optional[LevelAttempt]:
        """
        Complete immediately with the results gathered so far

        Idempotent: returns the existing attempt once TERMINAL. Nothing
        happens for a level that was never opened.
        """
        if self.state == SessionState.TERMINAL:
            return self.attempt
        if self.state != SessionState.IN_PROGRESS:
            return None

        logger.warning(
            f"⛔ Level {self.level_number} force-completed with "
            f"{len(self.results)}/{self.level.total_questions} answers"
        )
        if self._timer:
            self._timer.stop()
        self._complete(forced=True)
        return self.attempt

    # ==================== INTERNALS ====================

    def _start_timer(self, start_at: float, scheduled_at: Optional[float] = None) -> None:
        question = self.level.questions[self.question_index]
        self.draft_answer = ""
        self._scheduled_at = scheduled_at
        self._timer = QuestionTimer(
            timer_engine.start(question.time_limit_seconds, start_at),
            on_timeout=self._handle_timeout,
        )

    def _handle_timeout(self, state) -> None:
        question = self.current_question
        if question is None:
            return
        result = evaluate(
            question,
            self.draft_answer,
            question.time_limit_seconds,
            timed_out=True,
        )
        logger.info(f"⏰ Level {self.level_number} Q{question.id} timed out")
        if self._on_question_timeout:
            self._on_question_timeout(question, result)
        self._append(result)

    def _append(self, result: QuestionResult) -> None:
        self.results.append(result)
        logger.info(
            f"{'✅' if result.is_correct else '❌'} Level {self.level_number} Q{result.question_id} | "
            f"Score: {result.score} | Time: {result.time_taken_seconds}s"
            f"{' | TIMING ANOMALY' if result.timing_anomaly else ''}"
        )

        if self.question_index >= self.level.total_questions:
            self._complete(forced=False)
            return

        now = self.clock.now()
        self._start_timer(now + self.params.display_delay_seconds, scheduled_at=now)

    def _complete(self, forced: bool) -> None:
        self.state = SessionState.COMPLETING
        self._timer = None
        self.attempt = summarize(self.level, self.results, forced=forced)
        logger.info(
            f"🏁 Level {self.level_number} {self.attempt.outcome.value} | "
            f"Correct: {self.attempt.correct_count}/{self.level.total_questions} "
            f"(threshold {self.level.clear_threshold}) | Score: {self.attempt.total_score}"
        )
        try:
            if self._on_complete:
                self._on_complete(self.attempt)
        finally:
            self.state = SessionState.TERMINAL
