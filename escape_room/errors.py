"""
Error taxonomy for the game engine

All errors except PersistenceError are raised before any state mutation.
"""


class GameError(Exception):
    """Base class for engine errors"""


class InputError(GameError):
    """Empty or malformed submission (user-correctable)"""


class AccessError(GameError):
    """Level locked, already terminal, or stage not open"""


class AlreadyAttemptedError(AccessError):
    """Second terminal write for a level that was already attempted"""

    def __init__(self, level_number: int):
        super().__init__(f"Level {level_number} has already been attempted")
        self.level_number = level_number


class AuthError(GameError):
    """Invalid credentials or inactive team"""


class PersistenceError(GameError):
    """Attempt store write failed"""
