"""
Error taxonomy for roster generation.

Only ConfigurationError, InputError and GenerationFailure leave the search
controller. AttemptFailure is raised inside a single attempt and absorbed by
the controller, which discards that attempt and moves on.
"""


class RosterError(Exception):
    """Base class for every roster generation error."""


class ConfigurationError(RosterError):
    """The scheduling period is missing, inactive or malformed."""


class InputError(RosterError):
    """The worker pool cannot be scheduled (no approved workers, duplicate names)."""


class AttemptFailure(RosterError):
    """An internal invariant broke while building one attempt."""


class GenerationFailure(RosterError):
    """Every attempt failed or produced zero coverage."""

    def __init__(self, message: str, attempts: int = 0, failed_attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts
        self.failed_attempts = failed_attempts
