# Standard library imports for enumeration, UUID generation, and datetime handling
from enum import Enum
from datetime import datetime
import uuid

# Third-party imports for data validation and type hints
from typing import Optional, List
from pydantic import BaseModel, Field

from gridsched.models.split import Split


class TaskStatus(str, Enum):
    """
    Enumeration of task states during the scheduling lifecycle.

    Task lifecycle flow:
    PENDING → RUNNING → DONE/FAILED
    RUNNING → PENDING when the worker running it is declared lost.
    """
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class Locality(str, Enum):
    """
    Classification of an assignment, computed once when a task is handed out.

    - DATA_LOCAL: the worker's host holds a replica of the split
    - RACK_LOCAL: a replica lives on another host in the worker's rack
    - OFF_RACK: neither of the above
    """
    DATA_LOCAL = "data_local"
    RACK_LOCAL = "rack_local"
    OFF_RACK = "off_rack"


class Task(BaseModel):
    """
    Data model binding one split of a job to one worker execution.

    The candidate sets (`preferred_hosts`, `preferred_racks`) are computed
    once at task creation and cached here, since replica locations do not
    change during a job.
    """

    # === Task Identification ===
    task_id: str = None                         # Unique identifier, auto-generated if not provided
    job_id: str                                 # ID of the parent job
    split: Split                                # Input split handled by this task

    # === Locality Candidates ===
    preferred_hosts: List[str] = Field(default_factory=list)
    preferred_racks: List[str] = Field(default_factory=list)

    # === Assignment State ===
    status: TaskStatus = TaskStatus.PENDING
    assigned_worker: Optional[str] = None       # Host of the worker running the task
    locality: Optional[Locality] = None         # Classification of the latest assignment
    attempts: int = 0                           # Number of times the task was handed out
    error_message: Optional[str] = None

    # === Timing Information ===
    created_at: datetime = None
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __init__(self, **data):
        if data.get('task_id') is None:
            data['task_id'] = str(uuid.uuid4())
        if data.get('created_at') is None:
            data['created_at'] = datetime.utcnow()
        super().__init__(**data)

    @property
    def index(self) -> int:
        return self.split.index
