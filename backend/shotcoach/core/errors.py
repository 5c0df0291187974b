class ShotCoachError(Exception):
    """Base class for errors raised by the coaching core."""


class InvalidStateError(ShotCoachError):
    """Raised when an operation is called on a value that cannot satisfy it."""
