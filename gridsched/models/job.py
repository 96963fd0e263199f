# Standard library imports for enumeration, UUID generation, and datetime handling
from enum import Enum
from datetime import datetime
import uuid

# Third-party imports for data validation and type hints
from typing import Optional
from pydantic import BaseModel


class JobStatus(str, Enum):
    """
    Enumeration of job states.

    - PENDING: Job submitted but not yet planned
    - RUNNING: Map tasks are being handed out
    - COMPLETED: Every task finished successfully
    - FAILED: Planning failed or a task failed
    - CANCELLED: Job was shut down before finishing
    """
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class MapReduceJob(BaseModel):
    """
    Data model for a batch job whose map tasks are placed by locality.
    """

    # === Job Identification ===
    job_id: str = None                          # Unique identifier, auto-generated if not provided
    job_name: str
    client_id: Optional[str] = None

    # === Planning ===
    num_map_tasks: int = 1                      # Target split count handed to the input format

    # === Job State Tracking ===
    status: JobStatus = JobStatus.PENDING
    error_message: Optional[str] = None

    # === Timing Information ===
    created_at: datetime = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __init__(self, **data):
        if data.get('job_id') is None:
            data['job_id'] = str(uuid.uuid4())
        if data.get('created_at') is None:
            data['created_at'] = datetime.utcnow()
        super().__init__(**data)
