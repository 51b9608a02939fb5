"""Error taxonomy for the report pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base class for errors that halt a pipeline stage."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            return f"[{self.stage}] {message}"
        return message


class ParseError(PipelineError):
    """Raised when a timestamp or date field cannot be parsed."""
    pass


class ValidationError(PipelineError):
    """Raised when a required field is null or out of its domain."""
    pass


class EmptyColumnError(PipelineError):
    """Raised when a statistic is requested on a column with no values."""
    pass


class InsufficientDataError(PipelineError):
    """Raised when a series is too short for the requested operation."""
    pass


class InsufficientPeriodsError(InsufficientDataError):
    """Raised when a decomposition has fewer than two seasonal periods."""
    pass


class LengthMismatchError(PipelineError):
    """Raised when forecast and actual sequences are not aligned."""
    pass


class InvalidGranularity(PipelineError, ValueError):
    """Raised for an unrecognised resampling granularity."""
    pass
