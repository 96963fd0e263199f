from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class WorkerRegistrationRequest(BaseModel):
    """
    Payload sent by a task tracker when it joins the cluster.
    """
    worker_id: str = Field(..., description="Unique identifier of the worker")
    host: str = Field(..., description="Host the worker runs on")
    rack: Optional[str] = Field(None, description="Rack of the host, e.g. /r1")
    port: int = Field(8001, description="Port of the worker's task endpoint")
    slots: int = Field(1, ge=1, description="Number of tasks the worker can run at once")


class TopologyUpdateRequest(BaseModel):
    """
    Host-to-rack placements discovered by the cluster topology service.
    """
    hosts: Dict[str, str] = Field(..., description="Mapping of host to rack")


class SplitRequest(BaseModel):
    path: str = Field(..., description="Input file path")
    offset: int = Field(0, ge=0, description="Byte offset of the split")
    length: int = Field(0, ge=0, description="Length of the split in bytes")
    hosts: List[str] = Field(default_factory=list, description="Replica hosts reported by storage")


class JobSubmissionRequest(BaseModel):
    """
    A planned job: its splits with their replica hosts, in plan order.
    """
    job_name: str = Field(..., description="Name of the job")
    client_id: Optional[str] = Field(None, description="ID of the client submitting the job")
    splits: List[SplitRequest] = Field(default_factory=list, description="Input splits in plan order")


class TaskRequest(BaseModel):
    worker_id: str = Field(..., description="ID of the worker asking for work")
    slots: int = Field(1, ge=0, description="Idle slots to fill")


class TaskFailureRequest(BaseModel):
    error_message: Optional[str] = Field(None, description="Failure reason reported by the worker")


class TaskAssignmentResponse(BaseModel):
    task_id: str
    job_id: str
    split_id: str
    path: str
    offset: int
    length: int
    worker_host: str
    locality: str


class TaskStateResponse(BaseModel):
    task_id: str
    status: str
    assigned_worker: Optional[str] = None
    locality: Optional[str] = None
    attempts: int = 0


class JobStatusResponse(BaseModel):
    """
    Progress of a submitted job as reported to clients.
    """
    job_id: str = Field(..., description="Unique identifier of the job")
    status: str = Field(..., description="Current status of the job")
    job_name: str = Field(..., description="Name of the job")
    created_at: datetime = Field(..., description="Job creation timestamp")
    total_tasks: int = Field(..., description="Number of map tasks in the job")
    pending_tasks: int = Field(..., description="Tasks waiting for a worker")
    running_tasks: int = Field(..., description="Tasks bound to a worker")
    completed_tasks: int = Field(..., description="Tasks finished successfully")
    failed_tasks: int = Field(..., description="Tasks that failed")
    counters: Dict[str, int] = Field(default_factory=dict, description="Locality counters")
