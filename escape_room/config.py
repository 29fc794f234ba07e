"""
Game definition loader
"""
import yaml
from pathlib import Path
from typing import Union

from escape_room.models import GameConfig, Modality


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "data" / "round1.yaml"

LEVEL_NUMBERS = [1, 2, 3, 4, 5]


def validate_config(config: GameConfig) -> GameConfig:
    """
    Check cross-field rules pydantic cannot express

    Raises:
        ValueError: On the first violated rule
    """
    numbers = sorted(level.level_number for level in config.levels)
    if numbers != LEVEL_NUMBERS:
        raise ValueError(f"Levels must be numbered 1..5 exactly once, got {numbers}")

    secret = config.secret_word.strip().upper()
    if not secret:
        raise ValueError("secret_word must not be empty")

    for level in config.levels:
        n = level.level_number
        if not level.questions:
            raise ValueError(f"Level {n}: question sequence is empty")
        if level.clear_threshold > level.total_questions:
            raise ValueError(
                f"Level {n}: clear_threshold {level.clear_threshold} exceeds "
                f"{level.total_questions} questions"
            )

        ids = [q.id for q in level.questions]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Level {n}: question ids must be unique")

        if level.slot_position >= len(secret):
            raise ValueError(f"Level {n}: slot_position {level.slot_position} outside secret word")
        if secret[level.slot_position] != level.letter_to_unlock.upper():
            raise ValueError(
                f"Level {n}: letter {level.letter_to_unlock} does not match "
                f"secret word slot {level.slot_position}"
            )

        for q in level.questions:
            if q.modality == Modality.CHARACTER_LOCK and not q.accepted_answer.isalpha():
                raise ValueError(f"Level {n} Q{q.id}: character-lock answers must be alphabetic")

    return config


def load_game_config(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> GameConfig:
    """
    Load the game definition from a YAML file

    Args:
        config_path: Path to config file

    Returns:
        Validated GameConfig

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the definition is inconsistent
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    return validate_config(GameConfig(**data))
