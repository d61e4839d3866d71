"""
Error taxonomy for bracket generation, advancement and result reporting.
"""


class BracketError(Exception):
    """Base class for tournament engine errors"""

    pass


class ConfigurationError(BracketError):
    """Unknown format, too few teams or unusable settings. Raised before anything is persisted."""

    pass


class StateConflictError(BracketError):
    """The requested transition does not apply to the current tournament/match state"""

    pass


class ResultValidationError(BracketError):
    """A submitted match result is malformed"""

    pass


class StoreError(BracketError):
    """A persistence operation failed. Earlier pipeline steps are not rolled back."""

    pass
