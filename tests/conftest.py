"""
Shared fixtures: a controllable clock and a small five-level game
"""
import pytest

from escape_room.core.timer import TimeAuthority
from escape_room.models import (
    GameConfig, GameParams, LevelDefinition, Modality, Question, TeamInfo
)


class FakeClock:
    """Manually advanced time source"""

    def __init__(self, start: float = 1000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


def make_question(qid, answer="A", modality=Modality.CHOICE, points=10, time_limit=30):
    return Question(
        id=qid,
        modality=modality,
        prompt=f"Question {qid}",
        options=["A", "B", "C", "D"] if modality == Modality.CHOICE else [],
        accepted_answer=answer,
        points=points,
        time_limit_seconds=time_limit,
    )


# ELEVEN: slots 0..5, slot 4 is never revealed
LETTERS = {1: ("E", 0), 2: ("L", 1), 3: ("E", 2), 4: ("V", 3), 5: ("N", 5)}


def make_level(n, count=2, threshold=1, modality=Modality.CHOICE, answer="A", points=10, time_limit=30):
    letter, slot = LETTERS[n]
    return LevelDefinition(
        level_number=n,
        name=f"Level {n}",
        modality=modality,
        letter_to_unlock=letter,
        slot_position=slot,
        clear_threshold=threshold,
        questions=[
            make_question(i + 1, answer, modality, points, time_limit) for i in range(count)
        ],
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def authority(clock):
    return TimeAuthority(source=clock)


@pytest.fixture
def game_config():
    """Five levels, two CHOICE questions each (answer "A"), threshold 1, no display delay"""
    return GameConfig(
        params=GameParams(display_delay_seconds=0),
        secret_word="ELEVEN",
        final_word_hint="The one with powers",
        levels=[make_level(n) for n in range(1, 6)],
        teams=[
            TeamInfo(team_id="T1", team_name="Alpha", password="pw1"),
            TeamInfo(team_id="T2", team_name="Beta", password="pw2"),
            TeamInfo(team_id="T3", team_name="Gamma", password="pw3", is_active=False),
        ],
    )


@pytest.fixture
def levels(game_config):
    return game_config.levels_by_number()
