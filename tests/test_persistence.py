"""
Tests for the attempt store and write retries
"""
import pytest

from escape_room.errors import PersistenceError
from escape_room.models import FinalWordRecord, LevelAttemptRecord
from escape_room.services.persistence import AttemptStore, write_with_retry


def level_row(team_id, level, created_at):
    return LevelAttemptRecord(
        team_id=team_id, level_number=level, score=10,
        time_taken=5, cleared=True, created_at=created_at,
    )


def test_fetch_attempts_per_team_oldest_first():
    store = AttemptStore()
    store.append_level_attempt(level_row("T1", 2, 20.0))
    store.append_level_attempt(level_row("T2", 1, 5.0))
    store.append_level_attempt(level_row("T1", 1, 10.0))

    assert [r.level_number for r in store.fetch_attempts("T1")] == [1, 2]
    assert len(store.all_level_attempts()) == 3
    assert store.fetch_attempts("T9") == []


def test_final_word_rows():
    store = AttemptStore()
    store.append_final_word_attempt(
        FinalWordRecord(team_id="T1", word="TWELVE", is_correct=False, attempts_used=1, submitted_at=1.0)
    )
    assert len(store.fetch_final_word_attempts("T1")) == 1
    assert store.fetch_final_word_attempts("T2") == []
    assert len(store.all_final_word_attempts()) == 1


def test_retry_recovers_from_one_failure():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise IOError("disk full")
        return "ok"

    assert write_with_retry(flaky) == "ok"
    assert len(calls) == 2


def test_retry_gives_up():
    calls = []

    def broken():
        calls.append(1)
        raise IOError("down")

    with pytest.raises(PersistenceError):
        write_with_retry(broken, retries=2, what="Test write")
    assert len(calls) == 3


def test_at_least_one_retry():
    calls = []

    def broken():
        calls.append(1)
        raise IOError("down")

    with pytest.raises(PersistenceError):
        write_with_retry(broken, retries=0)
    assert len(calls) == 2
