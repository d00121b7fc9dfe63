"""
Error taxonomy for the board core.

ValidationError and NotFoundError are caller-facing and kept distinct so the
HTTP layer can pick a status code; PersistenceError wraps store failures.
"""


class BoardError(Exception):
    """Base class for every error raised by the board core."""
    pass


class ValidationError(BoardError):
    """Raised when a required field is missing/empty or input is malformed."""
    pass


class NotFoundError(BoardError):
    """Raised when an operation targets a card or comment that does not exist."""
    pass


class PersistenceError(BoardError):
    """Raised when the underlying SQLite store fails."""
    pass
