# Standard library imports for type hints and timestamps
from datetime import datetime
from typing import Dict, List, Optional, Sequence
import threading

# Internal imports for job planning, scheduling and logging
from gridsched.core.counters import RequeueCounterPolicy
from gridsched.core.errors import InvalidRequestError, JobNotFoundError
from gridsched.core.input_format import InputFormat
from gridsched.core.split_index import SplitLocationIndex
from gridsched.core.task_scheduler import SchedulingContext, validate_host
from gridsched.core.topology import TopologyResolver
from gridsched.models.job import JobStatus, MapReduceJob
from gridsched.models.split import Split
from gridsched.models.task import Task, TaskStatus
from gridsched.utils.logger import get_logger


class JobManager:
    """
    Registry of running jobs and their scheduling contexts.

    Every job gets its own `SchedulingContext`; all engine operations go
    through the context handle of the job they concern, so jobs never
    contend with each other. The JobManager itself only guards the
    job registry.
    """

    def __init__(
        self,
        topology: TopologyResolver,
        counter_policy: RequeueCounterPolicy = RequeueCounterPolicy.ADDITIVE
    ):
        """
        Args:
            topology: Shared host-to-rack resolver used to build candidate sets.
            counter_policy: What re-queues do to locality counters.
        """
        self.topology = topology
        self.counter_policy = RequeueCounterPolicy(counter_policy)

        # job_id -> MapReduceJob
        self.jobs: Dict[str, MapReduceJob] = {}

        # job_id -> SchedulingContext
        self.contexts: Dict[str, SchedulingContext] = {}

        self._registry_lock = threading.Lock()
        self.logger = get_logger(__name__)

    async def submit_job(
        self,
        job: MapReduceJob,
        splits: Optional[Sequence[Split]] = None,
        input_format: Optional[InputFormat] = None
    ) -> str:
        """
        Plan a job and make its map tasks available for assignment.

        Either explicit `splits` or an `input_format` is used; the input
        format is asked for `job.num_map_tasks` splits.

        Args:
            job: The job to register.
            splits: Already planned splits.
            input_format: Planner producing the splits.

        Returns:
            str: The job_id.

        Raises:
            InvalidRequestError: If the job id is already registered.
            Exception: If planning fails, the job is marked FAILED and the
                error is re-raised.
        """
        with self._registry_lock:
            if job.job_id in self.jobs:
                raise InvalidRequestError(f"Job already submitted: {job.job_id}")
            self.jobs[job.job_id] = job

        self.logger.info(f"Job {job.job_id} submitted: {job.job_name}")

        try:
            if input_format is not None:
                split_index = await SplitLocationIndex.build(input_format, job.num_map_tasks)
            else:
                split_index = SplitLocationIndex(splits or [])

            context = SchedulingContext(job.job_id, split_index, self.topology, self.counter_policy)
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error_message = str(e)
            self.logger.error(f"Failed to plan job {job.job_id}: {e}")
            raise

        with self._registry_lock:
            self.contexts[job.job_id] = context

        job.status = JobStatus.RUNNING
        job.started_at = datetime.utcnow()
        if not len(split_index):
            self._mark_completed(job)

        self.logger.info(f"Job {job.job_id} planned with {len(split_index)} map tasks")
        return job.job_id

    def get_job(self, job_id: str) -> MapReduceJob:
        job = self.jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def get_context(self, job_id: str) -> SchedulingContext:
        """
        Scheduling context handle of a job.

        Raises:
            JobNotFoundError: If the job is unknown or still being planned.
        """
        context = self.contexts.get(job_id)
        if context is None:
            raise JobNotFoundError(job_id)
        return context

    def request_task(self, job_id: str, worker_host: str) -> Optional[Task]:
        return self.get_context(job_id).request_task(worker_host)

    def request_tasks(self, job_id: str, worker_host: str, slots: int = 1) -> List[Task]:
        return self.get_context(job_id).request_tasks(worker_host, slots)

    def complete_task(self, job_id: str, task_id: str) -> Task:
        context = self.get_context(job_id)
        task = context.complete_task(task_id)
        if context.all_done() and self.jobs[job_id].status == JobStatus.RUNNING:
            self._mark_completed(self.jobs[job_id])
        return task

    def fail_task(self, job_id: str, task_id: str, error_message: Optional[str] = None) -> Task:
        """
        Record a failed task. Failed tasks are not retried; the job fails
        and stops handing out its remaining tasks.
        """
        context = self.get_context(job_id)
        task = context.fail_task(task_id, error_message)

        job = self.jobs[job_id]
        if job.status == JobStatus.RUNNING:
            job.status = JobStatus.FAILED
            job.error_message = f"Task {task_id} failed: {error_message or 'unknown error'}"
            job.completed_at = datetime.utcnow()
            context.shutdown()
            self.logger.error(f"Job {job_id} failed: {job.error_message}")
        return task

    def requeue_task(self, job_id: str, task_id: str) -> Task:
        return self.get_context(job_id).requeue_task(task_id)

    def worker_lost(self, worker_host: str) -> Dict[str, List[str]]:
        """
        Re-queue the RUNNING tasks of a lost worker in every job.

        Returns:
            Dict[str, List[str]]: job_id -> re-queued task ids, for jobs
            that had tasks on the worker.
        """
        validate_host(worker_host)
        requeued = {}
        for job_id, context in list(self.contexts.items()):
            tasks = context.requeue_worker(worker_host)
            if tasks:
                requeued[job_id] = [t.task_id for t in tasks]

        total = sum(len(ids) for ids in requeued.values())
        self.logger.info(f"Worker {worker_host} lost: {total} tasks re-queued across {len(requeued)} jobs")
        return requeued

    def shutdown_job(self, job_id: str):
        """
        Stop handing out tasks of a job and release waiting workers.
        """
        context = self.get_context(job_id)
        context.shutdown()
        job = self.jobs[job_id]
        if job.status in (JobStatus.PENDING, JobStatus.RUNNING):
            job.status = JobStatus.CANCELLED
            job.completed_at = datetime.utcnow()
        self.logger.info(f"Job {job_id} shut down")

    def get_counters(self, job_id: str) -> Dict[str, int]:
        return self.get_context(job_id).get_counters()

    def task_state(self, job_id: str, task_id: str) -> TaskStatus:
        return self.get_context(job_id).task_state(task_id)

    def get_job_tasks(self, job_id: str) -> List[Task]:
        return self.get_context(job_id).tasks()

    def _mark_completed(self, job: MapReduceJob):
        job.status = JobStatus.COMPLETED
        job.completed_at = datetime.utcnow()
        self.logger.info(f"Job {job.job_id} completed: all map tasks finished")
