"""
Engine exceptions.

Each error also derives from the matching builtin so callers may catch
ValueError / RuntimeError / LookupError as usual.
"""


class PadelError(Exception):
    """Base exception for all padel engine errors."""
    pass


class ValidationError(PadelError, ValueError):
    """Raised when an input (score, side, player reference) is rejected."""
    pass


class StateError(PadelError, RuntimeError):
    """Raised when an operation is not allowed in the current tournament state."""
    pass


class NotFoundError(PadelError, LookupError):
    """Raised when a match or tournament cannot be found."""
    pass


class PersistenceError(PadelError):
    """Raised when the bracket store fails to load or save a document."""
    pass
