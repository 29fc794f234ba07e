"""
Answer Evaluator - modality-specific comparison and per-question scoring

Formula:
  bonus = clamp(time_limit - time_taken, 0, time_limit)
  score = points + bonus   if correct
        = 0                otherwise

Rules:
  - CHOICE: exact string match (options are pre-rendered text)
  - FREE_TEXT: case-insensitive after trimming whitespace
  - CHARACTER_LOCK: case-insensitive, full-length assembled answer only
  - Empty / whitespace-only submissions are always incorrect
  - Anomalous timing (negative or implausible reading) earns no bonus
"""
from typing import Callable, Dict

from escape_room.models import Modality, Question, QuestionResult


def match_choice(submitted: str, accepted: str) -> bool:
    return submitted == accepted


def match_free_text(submitted: str, accepted: str) -> bool:
    return submitted.strip().lower() == accepted.strip().lower()


def match_character_lock(submitted: str, accepted: str) -> bool:
    # Assembled letter by letter upstream; partial locks never match
    if len(submitted) != len(accepted):
        return False
    return submitted.upper() == accepted.upper()


MATCHERS: Dict[Modality, Callable[[str, str], bool]] = {
    Modality.CHOICE: match_choice,
    Modality.FREE_TEXT: match_free_text,
    Modality.CHARACTER_LOCK: match_character_lock,
}


def is_blank(answer) -> bool:
    return answer is None or not str(answer).strip()


def calculate_time_bonus(time_taken: float, time_limit: int, timing_anomaly: bool = False) -> int:
    """
    Unused-time bonus in whole seconds

    Args:
        time_taken: Seconds taken to answer
        time_limit: Question time limit (seconds)
        timing_anomaly: Reading flagged as implausible

    Returns:
        Bonus in range [0, time_limit]
    """
    if timing_anomaly or time_taken < 0:
        return 0
    return int(min(time_limit, max(0, time_limit - time_taken)))


def check_answer(question: Question, submitted: str) -> bool:
    if is_blank(submitted):
        return False
    return MATCHERS[question.modality](submitted, question.accepted_answer)


def evaluate(
    question: Question,
    submitted_answer: str,
    time_taken_seconds: float,
    timing_anomaly: bool = False,
    timed_out: bool = False,
) -> QuestionResult:
    """
    Evaluate one submission (pure function)

    Args:
        question: Question definition
        submitted_answer: Raw answer text ("" for an unanswered timeout)
        time_taken_seconds: Seconds from question start to submission
        timing_anomaly: Time reading flagged by the timer engine
        timed_out: Submission was produced by a timeout

    Returns:
        QuestionResult
    """
    submitted = submitted_answer or ""
    anomaly = timing_anomaly or time_taken_seconds < 0
    is_correct = check_answer(question, submitted)

    score = 0
    if is_correct:
        score = question.points + calculate_time_bonus(
            time_taken_seconds, question.time_limit_seconds, anomaly
        )

    return QuestionResult(
        question_id=question.id,
        submitted_answer=submitted,
        is_correct=is_correct,
        score=score,
        time_taken_seconds=time_taken_seconds,
        timed_out=timed_out,
        timing_anomaly=anomaly,
    )
