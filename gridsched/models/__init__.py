from gridsched.models.split import BlockLocation, FileStatus, Split
from gridsched.models.task import Locality, Task, TaskStatus
from gridsched.models.job import JobStatus, MapReduceJob
from gridsched.models.worker import Worker, WorkerStatus

__all__ = [
    "BlockLocation",
    "FileStatus",
    "JobStatus",
    "Locality",
    "MapReduceJob",
    "Split",
    "Task",
    "TaskStatus",
    "Worker",
    "WorkerStatus",
]
