class GameError(Exception):
    """Base class for letter game errors"""


class InvalidStateError(GameError):
    """Operation attempted while the game session is in the wrong state"""


class PersistenceError(GameError):
    """The progress store failed to read or write a record"""
