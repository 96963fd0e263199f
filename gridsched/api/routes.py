from typing import List

# FastAPI imports for routing and HTTP error handling
from fastapi import APIRouter, HTTPException, status

# Internal API models for request/response validation
from gridsched.api.models import (
    JobStatusResponse,
    JobSubmissionRequest,
    TaskAssignmentResponse,
    TaskFailureRequest,
    TaskRequest,
    TaskStateResponse,
    TopologyUpdateRequest,
    WorkerRegistrationRequest,
)

# Core scheduling components
from gridsched.core.counters import RequeueCounterPolicy
from gridsched.core.errors import (
    InconsistentTaskStateError,
    InvalidRequestError,
    JobNotFoundError,
    SchedulerError,
    TaskNotFoundError,
)
from gridsched.core.job_manager import JobManager
from gridsched.core.topology import TopologyResolver
from gridsched.services.task_dispatcher import TaskDispatcher
from gridsched.services.worker_registry import WorkerRegistry

# Data models
from gridsched.models.job import MapReduceJob
from gridsched.models.split import Split
from gridsched.models.task import Task, TaskStatus
from gridsched.models.worker import Worker

# Utility imports
from gridsched.utils.config import get_settings
from gridsched.utils.logger import get_logger

# ===== API Router Configuration =====
router = APIRouter()
settings = get_settings()

topology = TopologyResolver(default_rack=settings.default_rack)
job_manager = JobManager(topology, RequeueCounterPolicy(settings.requeue_counter_policy))
worker_registry = WorkerRegistry(topology, job_manager)
task_dispatcher = TaskDispatcher(timeout=settings.dispatch_timeout)

logger = get_logger(__name__)


def _http_error(e: SchedulerError) -> HTTPException:
    """
    Map a scheduling error to the matching HTTP status.
    """
    if isinstance(e, (JobNotFoundError, TaskNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, InconsistentTaskStateError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, InvalidRequestError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    logger.warning(f"Rejected request: {e}")
    return HTTPException(status_code=code, detail=str(e))


def _task_state(task: Task) -> TaskStateResponse:
    return TaskStateResponse(
        task_id=task.task_id,
        status=task.status.value,
        assigned_worker=task.assigned_worker,
        locality=task.locality.value if task.locality else None,
        attempts=task.attempts
    )


# ===== Cluster Membership Endpoints =====

@router.post("/topology")
async def update_topology(update: TopologyUpdateRequest):
    """
    Place hosts in racks. Fed by the cluster topology discovery service.
    """
    for host, rack in update.hosts.items():
        topology.add_host(host, rack)
    return {"status": "updated", "hosts": len(topology), "racks": sorted(topology.racks())}


@router.post("/workers/register")
async def register_worker(worker: WorkerRegistrationRequest):
    """
    Register a task tracker; its host is placed in the topology if a rack is given.
    """
    worker_obj = Worker(
        worker_id=worker.worker_id,
        host=worker.host,
        rack=worker.rack,
        port=worker.port,
        slots=worker.slots
    )
    try:
        worker_registry.add_worker(worker_obj)
    except SchedulerError as e:
        raise _http_error(e)
    return {"status": "registered", "worker_id": worker.worker_id, "rack": topology.rack_of(worker.host)}


@router.post("/workers/{worker_id}/lost")
async def worker_lost(worker_id: str):
    """
    Declare a worker dead; its RUNNING tasks go back to PENDING.
    """
    try:
        requeued = worker_registry.mark_lost(worker_id)
    except SchedulerError as e:
        raise _http_error(e)
    return {"status": "lost", "worker_id": worker_id, "requeued": requeued}


# ===== Job Management Endpoints =====

@router.post("/jobs", response_model=dict)
async def submit_job(job_request: JobSubmissionRequest):
    """
    Submit a planned job. Split order in the request is the assignment order.
    """
    job = MapReduceJob(
        job_name=job_request.job_name,
        client_id=job_request.client_id,
        num_map_tasks=len(job_request.splits)
    )
    splits = [
        Split(index=i, path=s.path, offset=s.offset, length=s.length, hosts=s.hosts)
        for i, s in enumerate(job_request.splits)
    ]
    try:
        job_id = await job_manager.submit_job(job, splits=splits)
    except SchedulerError as e:
        raise _http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"job_id": job_id, "status": "submitted", "total_tasks": len(splits)}


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str):
    try:
        job = job_manager.get_job(job_id)
        tasks = job_manager.get_job_tasks(job_id)
        counters = job_manager.get_counters(job_id)
    except SchedulerError as e:
        raise _http_error(e)

    return JobStatusResponse(
        job_id=job.job_id,
        status=job.status.value,
        job_name=job.job_name,
        created_at=job.created_at,
        total_tasks=len(tasks),
        pending_tasks=len([t for t in tasks if t.status == TaskStatus.PENDING]),
        running_tasks=len([t for t in tasks if t.status == TaskStatus.RUNNING]),
        completed_tasks=len([t for t in tasks if t.status == TaskStatus.DONE]),
        failed_tasks=len([t for t in tasks if t.status == TaskStatus.FAILED]),
        counters=counters
    )


@router.get("/jobs/{job_id}/counters")
async def get_job_counters(job_id: str):
    try:
        return job_manager.get_counters(job_id)
    except SchedulerError as e:
        raise _http_error(e)


@router.post("/jobs/{job_id}/shutdown")
async def shutdown_job(job_id: str):
    try:
        job_manager.shutdown_job(job_id)
    except SchedulerError as e:
        raise _http_error(e)
    return {"status": "shutdown", "job_id": job_id}


# ===== Task Assignment Endpoints =====

@router.post("/jobs/{job_id}/tasks/request", response_model=List[TaskAssignmentResponse])
async def request_tasks(job_id: str, task_request: TaskRequest):
    """
    Hand pending tasks of a job to a registered worker.

    Returns an empty list when nothing is pending; that is not an error.
    """
    try:
        worker = worker_registry.require_available(task_request.worker_id)
        tasks = job_manager.request_tasks(job_id, worker.host, task_request.slots)
    except SchedulerError as e:
        raise _http_error(e)

    if settings.dispatch_enabled:
        for task in tasks:
            await task_dispatcher.dispatch(task, worker)

    return [
        TaskAssignmentResponse(
            task_id=t.task_id,
            job_id=t.job_id,
            split_id=t.split.split_id,
            path=t.split.path,
            offset=t.split.offset,
            length=t.split.length,
            worker_host=t.assigned_worker,
            locality=t.locality.value
        )
        for t in tasks
    ]


@router.get("/jobs/{job_id}/tasks/{task_id}", response_model=TaskStateResponse)
async def get_task_state(job_id: str, task_id: str):
    try:
        return _task_state(job_manager.get_context(job_id).get_task(task_id))
    except SchedulerError as e:
        raise _http_error(e)


@router.post("/jobs/{job_id}/tasks/{task_id}/complete", response_model=TaskStateResponse)
async def complete_task(job_id: str, task_id: str):
    try:
        return _task_state(job_manager.complete_task(job_id, task_id))
    except SchedulerError as e:
        raise _http_error(e)


@router.post("/jobs/{job_id}/tasks/{task_id}/fail", response_model=TaskStateResponse)
async def fail_task(job_id: str, task_id: str, failure: TaskFailureRequest):
    try:
        return _task_state(job_manager.fail_task(job_id, task_id, failure.error_message))
    except SchedulerError as e:
        raise _http_error(e)


@router.post("/jobs/{job_id}/tasks/{task_id}/requeue", response_model=TaskStateResponse)
async def requeue_task(job_id: str, task_id: str):
    """
    Return a RUNNING task to PENDING. Called by the task liveness monitor.
    """
    try:
        return _task_state(job_manager.requeue_task(job_id, task_id))
    except SchedulerError as e:
        raise _http_error(e)


# ===== System Health Endpoints =====

@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "GridSched Master"}
