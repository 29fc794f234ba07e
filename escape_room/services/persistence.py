"""
Attempt persistence - append-only store shared by all teams

Rows are never updated in place: a team's total score is always a sum over
immutable rows. Writes are serialized with a lock.
"""
import logging
import threading
from typing import Callable, List, TypeVar

from escape_room.errors import PersistenceError
from escape_room.models import FinalWordRecord, LevelAttemptRecord


logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttemptStore:
    """In-memory append-only attempt store"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._level_rows: List[LevelAttemptRecord] = []
        self._final_word_rows: List[FinalWordRecord] = []

    def append_level_attempt(self, record: LevelAttemptRecord) -> LevelAttemptRecord:
        with self._lock:
            self._level_rows.append(record)
        return record

    def fetch_attempts(self, team_id: str) -> List[LevelAttemptRecord]:
        """Team's level rows, oldest first"""
        with self._lock:
            rows = [r for r in self._level_rows if r.team_id == team_id]
        return sorted(rows, key=lambda r: r.created_at)

    def append_final_word_attempt(self, record: FinalWordRecord) -> FinalWordRecord:
        with self._lock:
            self._final_word_rows.append(record)
        return record

    def fetch_final_word_attempts(self, team_id: str) -> List[FinalWordRecord]:
        with self._lock:
            rows = [r for r in self._final_word_rows if r.team_id == team_id]
        return sorted(rows, key=lambda r: r.submitted_at)

    def all_level_attempts(self) -> List[LevelAttemptRecord]:
        with self._lock:
            return list(self._level_rows)

    def all_final_word_attempts(self) -> List[FinalWordRecord]:
        with self._lock:
            return list(self._final_word_rows)


def write_with_retry(write: Callable[[], T], retries: int = 1, what: str = "write") -> T:
    """
    Run a store write, retrying on failure

    At least one retry is always made.

    Raises:
        PersistenceError: Every try failed
    """
    tries = 1 + max(1, retries)
    last_error = None
    for attempt in range(1, tries + 1):
        try:
            return write()
        except Exception as e:
            last_error = e
            if attempt < tries:
                logger.warning(f"⚠️ {what} failed (try {attempt}/{tries}): {e}. Retrying")

    logger.error(f"❌ {what} failed after {tries} tries: {last_error}")
    raise PersistenceError(f"{what} failed: {last_error}") from last_error
