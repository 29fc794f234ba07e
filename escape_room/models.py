"""
Data models for the escape-room engine
"""
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class Modality(str, Enum):
    """Input modality of a question (drives answer comparison)"""
    CHOICE = "CHOICE"
    FREE_TEXT = "FREE_TEXT"
    CHARACTER_LOCK = "CHARACTER_LOCK"


class LevelOutcome(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    CLEARED = "CLEARED"
    FAILED = "FAILED"


class LevelStatus(str, Enum):
    """Status of a level as seen from the dashboard"""
    LOCKED = "LOCKED"
    UNLOCKED = "UNLOCKED"
    ATTEMPTED = "ATTEMPTED"
    CLEARED = "CLEARED"
    FAILED = "FAILED"


class GameParams(BaseModel):
    """Engine parameters (defaults follow the round-1 rules)"""
    tolerance_seconds: int = 2          # Network/reporting latency allowance
    display_delay_seconds: float = 1.5  # Feedback pause between questions
    tick_interval_seconds: float = 0.1  # Suggested countdown refresh rate
    max_final_word_attempts: int = 2
    leaderboard_size: int = 7
    persistence_retries: int = 1        # Retries after the first failed write


class Question(BaseModel):
    """One static question of a level"""
    model_config = ConfigDict(frozen=True)

    id: int
    modality: Modality
    prompt: str
    options: List[str] = []
    code: Optional[str] = None     # Auxiliary display: code snippet
    cipher: Optional[str] = None   # Auxiliary display: encrypted text
    hint: Optional[str] = None     # Auxiliary display: hint
    accepted_answer: str
    points: int = Field(ge=0)
    time_limit_seconds: int = Field(gt=0)


class QuestionResult(BaseModel):
    """Evaluated answer to one question; created at most once per attempt"""
    model_config = ConfigDict(frozen=True)

    question_id: int
    submitted_answer: str
    is_correct: bool
    score: int = Field(ge=0)
    time_taken_seconds: float
    timed_out: bool = False
    timing_anomaly: bool = False  # Flagged: elapsed outside [0, limit + tolerance]


class LevelDefinition(BaseModel):
    """Static configuration of one level"""
    model_config = ConfigDict(frozen=True)

    level_number: int = Field(ge=1, le=5)
    name: str = ""
    description: str = ""  # Shared context (e.g. a scenario) shown above the questions
    modality: Modality
    letter_to_unlock: str = Field(min_length=1, max_length=1)
    slot_position: int = Field(ge=0)
    clear_threshold: int = Field(ge=0)
    questions: List[Question]

    @property
    def total_questions(self) -> int:
        return len(self.questions)


class LevelAttempt(BaseModel):
    """Summary of one team's run through a level"""
    level_number: int
    results: List[QuestionResult] = []
    outcome: LevelOutcome = LevelOutcome.IN_PROGRESS
    total_score: int = 0
    total_time: float = 0.0
    forced: bool = False
    persistence_failed: bool = False

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.is_correct)


class TeamProgress(BaseModel):
    """Per-team level progress; mutated only by core.progress.record_level_attempt"""
    team_id: str
    attempted_levels: Set[int] = set()
    cleared_levels: Set[int] = set()
    failed_levels: Set[int] = set()
    hidden_scores: Dict[int, int] = {}
    unlocked_letters: Set[str] = set()


class FinalWordAttempt(BaseModel):
    """Final word state of a team"""
    team_id: str
    attempts_used: int = 0
    is_correct: bool = False
    is_locked: bool = False
    submitted_at: Optional[float] = None  # Time of the latest guess


class LevelAttemptRecord(BaseModel):
    """Persisted row for a completed level (append-only)"""
    model_config = ConfigDict(frozen=True)

    team_id: str
    level_number: int
    score: int
    time_taken: float
    cleared: bool
    letters_unlocked: List[str] = []
    created_at: float


class FinalWordRecord(BaseModel):
    """Persisted row for one final word guess (append-only)"""
    model_config = ConfigDict(frozen=True)

    team_id: str
    word: str
    is_correct: bool
    attempts_used: int
    submitted_at: float


class Checkpoint(BaseModel):
    """Session-scoped snapshot of an unfinished level"""
    level_number: int
    question_index: int
    results: List[QuestionResult] = []
    timer_start: Optional[float] = None  # Start of the unanswered question's timer


class TeamInfo(BaseModel):
    team_id: str
    team_name: str
    password: str
    is_active: bool = True


class LeaderboardEntry(BaseModel):
    rank: int
    team_id: str
    team_name: Optional[str] = None
    total_score: int
    submitted_at: float


class GameEvent(BaseModel):
    """One-way notification from the engine to the presentation layer"""
    kind: str  # "question_timeout" | "level_terminal" | "final_word_locked"
    team_id: str
    level_number: Optional[int] = None
    question_id: Optional[int] = None
    outcome: Optional[LevelOutcome] = None
    detail: Dict = {}


class GameConfig(BaseModel):
    """Full game definition loaded from YAML"""
    params: GameParams = GameParams()
    secret_word: str
    final_word_hint: Optional[str] = None
    levels: List[LevelDefinition]
    teams: List[TeamInfo] = []

    def levels_by_number(self) -> Dict[int, LevelDefinition]:
        return {level.level_number: level for level in self.levels}
