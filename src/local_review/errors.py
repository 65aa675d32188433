"""Exception hierarchy for local-review.

Only ``NoChangesError`` and ``RepositoryError`` abort a run. Everything else is
captured as data on the final report.
"""


class ReviewError(Exception):
    """Base class for all local-review errors."""

    pass


class NoChangesError(ReviewError):
    """Raised when the working tree has nothing to review."""

    pass


class RepositoryError(ReviewError):
    """Raised when the review root is not a usable git working tree."""

    pass


class TaskFailure(ReviewError):
    """Raised by an analysis task that cannot produce findings."""

    def __init__(self, task_id: str, message: str) -> None:
        super().__init__(f"{task_id}: {message}")
        self.task_id = task_id


class ScoringError(ReviewError):
    """Raised when a finding cannot be scored."""

    pass


class ConfigError(ReviewError):
    """Raised for malformed configuration files."""

    pass
