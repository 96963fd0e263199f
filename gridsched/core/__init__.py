from gridsched.core.candidates import build_candidates
from gridsched.core.counters import Counter, LocalityCounters, RequeueCounterPolicy
from gridsched.core.errors import (
    InconsistentTaskStateError,
    InvalidRequestError,
    JobNotFoundError,
    SchedulerError,
    TaskNotFoundError,
)
from gridsched.core.split_index import SplitLocationIndex
from gridsched.core.task_scheduler import SchedulingContext
from gridsched.core.topology import DEFAULT_RACK, TopologyResolver

__all__ = [
    "Counter",
    "DEFAULT_RACK",
    "InconsistentTaskStateError",
    "InvalidRequestError",
    "JobNotFoundError",
    "LocalityCounters",
    "RequeueCounterPolicy",
    "SchedulerError",
    "SchedulingContext",
    "SplitLocationIndex",
    "TaskNotFoundError",
    "TopologyResolver",
    "build_candidates",
]
