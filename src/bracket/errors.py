"""
Errors raised by the bracket engine.
"""


class BracketError(Exception):
    """Base class for all bracket engine errors."""


class InvalidBracketSize(BracketError):
    """Bracket size is not a power of two, or is smaller than 2."""


class InsufficientItems(BracketError):
    """Fewer than two items were supplied."""


class DuplicateItemId(BracketError):
    """Two supplied items share the same id."""


class InvalidChoice(BracketError):
    """Choice references the wrong match, the wrong order or an unknown winner."""


class TournamentAlreadyCompleted(BracketError):
    """A choice was made after the tournament already produced a winner."""


class NothingToUndo(BracketError):
    """Undo was requested with an empty history."""
