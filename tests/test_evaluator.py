"""
Tests for answer comparison and per-question scoring
"""
from escape_room.core.evaluator import calculate_time_bonus, evaluate
from escape_room.models import Modality

from conftest import make_question


def test_correct_with_time_bonus():
    """points=10, limit=30, t=5 -> 10 + 25 = 35"""
    q = make_question(1, "Git", points=10, time_limit=30)
    result = evaluate(q, "Git", 5)
    assert result.is_correct
    assert result.score == 35


def test_incorrect_scores_zero():
    q = make_question(1, "Git")
    result = evaluate(q, "Docker", 1)
    assert not result.is_correct
    assert result.score == 0


def test_choice_is_case_sensitive():
    """Options are pre-rendered text: exact match only"""
    q = make_question(1, "Git")
    assert not evaluate(q, "git", 1).is_correct
    assert not evaluate(q, "Git ", 1).is_correct


def test_free_text_case_insensitive_trimmed():
    q = make_question(1, "Hawkins Lab", Modality.FREE_TEXT)
    assert evaluate(q, "  hawkins lab ", 3).is_correct
    assert not evaluate(q, "hawkins", 3).is_correct


def test_character_lock_full_length_only():
    """Lock answers must be fully assembled"""
    q = make_question(1, "POINTER", Modality.CHARACTER_LOCK, time_limit=60)
    assert evaluate(q, "pointer", 10).is_correct
    assert not evaluate(q, "POINTE", 10).is_correct
    assert not evaluate(q, "POINTERS", 10).is_correct


def test_blank_always_incorrect():
    """Empty or whitespace-only submissions never match"""
    q = make_question(1, " ", Modality.FREE_TEXT)
    assert not evaluate(q, "", 1).is_correct
    assert not evaluate(q, "   ", 1).is_correct
    assert evaluate(q, "", 1).score == 0


def test_timeout_at_limit_gets_points_only():
    q = make_question(1, "A", points=10, time_limit=30)
    result = evaluate(q, "A", 30, timed_out=True)
    assert result.score == 10
    assert result.timed_out


def test_bonus_clamped_past_limit():
    assert calculate_time_bonus(45, 30) == 0


def test_negative_time_earns_no_bonus():
    """Negative elapsed is flagged and never rewarded"""
    q = make_question(1, "A", points=10, time_limit=30)
    result = evaluate(q, "A", -5)
    assert result.is_correct
    assert result.timing_anomaly
    assert result.score == 10


def test_flagged_anomaly_earns_no_bonus():
    q = make_question(1, "A", points=10, time_limit=30)
    result = evaluate(q, "A", 3, timing_anomaly=True)
    assert result.score == 10
    assert result.timing_anomaly


def test_score_bound():
    """0 <= score <= points + limit for every time reading"""
    q = make_question(1, "A", points=10, time_limit=30)
    for t in range(-10, 50):
        for answer in ("A", "B", ""):
            result = evaluate(q, answer, t)
            assert 0 <= result.score <= q.points + q.time_limit_seconds
            if not result.is_correct:
                assert result.score == 0


def test_evaluate_is_pure():
    q = make_question(1, "A")
    assert evaluate(q, "A", 4) == evaluate(q, "A", 4)
