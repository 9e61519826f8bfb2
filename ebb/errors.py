"""Error kinds raised by the analysis pipeline."""


class EbbError(Exception):
    """Base class for all engine errors."""


class EmptyInputError(EbbError, ValueError):
    """A statistic was requested over an empty sequence."""


class InvalidInputError(EbbError, ValueError):
    """A collection handed to the insight generator is not a sequence."""


class InsightGenerationError(EbbError, RuntimeError):
    """A category detector failed. Partial insights are discarded."""

    def __init__(self, message: str = "Failed to generate insights"):
        super().__init__(message)
