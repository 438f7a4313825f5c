"""Exception types raised by the analysis pipeline."""


class HeartAgentError(Exception):
    """Base class for every pipeline failure."""


class LoadError(HeartAgentError):
    """Input file is missing, unreadable or malformed."""


class ConfigError(HeartAgentError):
    """Configuration values are invalid or contradict the data."""


class EmptyDataError(HeartAgentError):
    """A stage received a table with no rows."""


class ModelSelectionError(HeartAgentError):
    """Cross-validation could not be carried out for a candidate."""

    def __init__(self, message: str, fold: int | None = None,
                 candidate: float | None = None):
        super().__init__(message)
        self.fold = fold
        self.candidate = candidate
