from src.dayreport.domain.models.quota import ArtifactSize, QuotaCounter
from src.dayreport.domain.models.task import Task
from src.dayreport.domain.models.task_request import RequestType, TaskRequest
from src.dayreport.domain.models.task_state import TaskState

__all__ = [
    "ArtifactSize",
    "QuotaCounter",
    "RequestType",
    "Task",
    "TaskRequest",
    "TaskState",
]
