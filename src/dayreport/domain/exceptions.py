class PipelineError(Exception):
    """Base class for every failure the report pipeline knows how to describe."""


class InputValidationError(PipelineError, ValueError):
    """Raised when caller input (URL, path, payload shape) is rejected before any side effect."""


class FetchError(PipelineError):
    """Raised when a page request fails or the remote answers with an error status."""

    def __init__(self, message: str, page: int) -> None:
        super().__init__(message)
        self.page = page


class EmptyResultError(PipelineError):
    """Raised when the endpoint produced no records at all."""

    def __init__(self) -> None:
        super().__init__("The endpoint returned no records.")


class QuotaExceededError(PipelineError):
    """Raised when the daily artifact budget is exhausted."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Daily artifact limit of {limit} reached; try again tomorrow.")
        self.limit = limit


class ArtifactTooLargeError(PipelineError):
    """Raised when a rendered artifact exceeds the per-artifact byte cap."""

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        super().__init__(
            f"Artifact size {size_bytes / (1024 * 1024):.2f}MB exceeds the "
            f"{max_bytes / (1024 * 1024):.0f}MB limit."
        )
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes


class PersistenceError(PipelineError):
    """Raised when an artifact or the quota counter cannot be written to disk."""


class TaskNotFoundError(Exception):
    """Raised when a task identifier does not exist in the registry."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class InvalidTransitionError(Exception):
    """Raised when code tries to move a task out of a terminal state."""

    def __init__(self, task_id: str, current: str, target: str) -> None:
        super().__init__(f"Task '{task_id}' cannot move from {current} to {target}.")
        self.task_id = task_id
        self.current = current
        self.target = target
