"""
Error taxonomy for the timeline engine.

Core operations raise these; the API layer maps each one to a distinct
response so callers can tell malformed input from a missing target.
"""


class ChronomapError(Exception):
    """Base class for all engine errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChronomapError):
    """Malformed or missing input (bad year, unknown kind, invalid epoch)."""

    kind = "validation_error"


class NotFoundError(ChronomapError):
    """Referenced entry, epoch or element does not exist."""

    kind = "not_found"


class StoreIOError(ChronomapError):
    """Underlying persistence read or write failed."""

    kind = "store_io_error"


class ConsistencyError(ChronomapError):
    """An internal invariant of the timeline does not hold."""

    kind = "consistency_error"
