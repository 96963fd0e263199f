from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple
import threading
import time

from gridsched.core.candidates import build_candidates
from gridsched.core.counters import LocalityCounters, RequeueCounterPolicy
from gridsched.core.errors import InconsistentTaskStateError, InvalidRequestError, TaskNotFoundError
from gridsched.core.split_index import SplitLocationIndex
from gridsched.core.topology import TopologyResolver
from gridsched.models.task import Locality, Task, TaskStatus
from gridsched.utils.logger import get_logger


def validate_host(host) -> str:
    """
    Reject worker hosts that cannot identify a machine.

    Raises:
        InvalidRequestError: If the host is not a non-empty string without whitespace.
    """
    if not isinstance(host, str) or not host or host != host.strip() or any(c.isspace() for c in host):
        raise InvalidRequestError(f"Invalid worker host: {host!r}")
    return host


class SchedulingContext:
    """
    Locality-aware assignment of one job's map tasks to workers.

    Pending tasks are kept in three indexes:
    - by host: every host holding a replica of the task's split
    - by rack: every rack of those hosts
    - unindexed: every pending task, the off-rack fallback pool

    A worker asking for work gets the earliest pending task local to its
    host, else the earliest local to its rack, else the earliest pending
    task at all. The picked task is removed from all three indexes under
    the context lock, so no two workers can receive the same task.

    Each job has its own context and lock; contexts never share state
    besides the read-only topology.
    """

    def __init__(
        self,
        job_id: str,
        split_index: SplitLocationIndex,
        topology: TopologyResolver,
        counter_policy: RequeueCounterPolicy = RequeueCounterPolicy.ADDITIVE
    ):
        self.job_id = job_id
        self.split_index = split_index
        self.topology = topology
        self.counter_policy = RequeueCounterPolicy(counter_policy)
        self.counters = LocalityCounters()
        self.logger = get_logger(__name__)

        self._lock = threading.Lock()
        self._work_available = threading.Condition(self._lock)
        self._shutdown = False

        # task_id -> Task, in plan order
        self._tasks: Dict[str, Task] = {}
        # task_id -> position in the plan; breaks ties between equal split indexes
        self._sequence: Dict[str, int] = {}
        self._by_host: Dict[str, Set[str]] = {}
        self._by_rack: Dict[str, Set[str]] = {}
        self._unindexed: Set[str] = set()

        for sequence, split in enumerate(split_index):
            hosts, racks = build_candidates(split, topology, split_index)
            task = Task(job_id=job_id, split=split, preferred_hosts=hosts, preferred_racks=racks)
            self._tasks[task.task_id] = task
            self._sequence[task.task_id] = sequence
            self._insert(task)

        self.logger.info(f"Scheduling context for job {job_id} created with {len(self._tasks)} tasks")

    # ===== Index maintenance (callers hold the lock) =====

    def _insert(self, task: Task):
        for host in task.preferred_hosts:
            self._by_host.setdefault(host, set()).add(task.task_id)
        for rack in task.preferred_racks:
            self._by_rack.setdefault(rack, set()).add(task.task_id)
        self._unindexed.add(task.task_id)

    def _remove(self, task: Task):
        for index, keys in ((self._by_host, task.preferred_hosts), (self._by_rack, task.preferred_racks)):
            for key in keys:
                bucket = index.get(key)
                if bucket is None:
                    continue
                bucket.discard(task.task_id)
                if not bucket:
                    del index[key]
        self._unindexed.discard(task.task_id)

    def _plan_order(self, task_id: str) -> Tuple[int, int]:
        return self._tasks[task_id].index, self._sequence[task_id]

    def _earliest(self, bucket: Set[str]) -> str:
        return min(bucket, key=self._plan_order)

    def _pick(self, host: str) -> Tuple[Optional[str], Optional[Locality]]:
        bucket = self._by_host.get(host)
        if bucket:
            return self._earliest(bucket), Locality.DATA_LOCAL

        bucket = self._by_rack.get(self.topology.rack_of(host))
        if bucket:
            return self._earliest(bucket), Locality.RACK_LOCAL

        if self._unindexed:
            return self._earliest(self._unindexed), Locality.OFF_RACK

        return None, None

    def _assign_locked(self, host: str) -> Optional[Task]:
        if self._shutdown:
            return None

        task_id, locality = self._pick(host)
        if task_id is None:
            return None

        task = self._tasks[task_id]
        self._remove(task)
        task.status = TaskStatus.RUNNING
        task.assigned_worker = host
        task.assigned_at = datetime.utcnow()
        task.locality = locality
        task.attempts += 1
        self.counters.record(locality)

        self.logger.info(
            f"Task {task.task_id} (split {task.split.split_id}) of job {self.job_id} "
            f"assigned to {host}: {locality.value}"
        )
        return task

    def _get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    # ===== Assignment =====

    def request_task(self, worker_host: str) -> Optional[Task]:
        """
        Hand the best pending task to a worker.

        Args:
            worker_host (str): Host of the requesting worker.

        Returns:
            Optional[Task]: The task, now RUNNING and bound to the worker,
            or None if nothing is pending or the job was shut down.

        Raises:
            InvalidRequestError: If the host is empty or malformed.
        """
        validate_host(worker_host)
        with self._lock:
            return self._assign_locked(worker_host)

    def request_tasks(self, worker_host: str, slots: int) -> List[Task]:
        """
        Fill up to `slots` idle slots of one worker, each pick tiered on its own.
        """
        validate_host(worker_host)
        if slots < 0:
            raise InvalidRequestError(f"Invalid slot count: {slots}")
        assigned = []
        with self._lock:
            for _ in range(slots):
                task = self._assign_locked(worker_host)
                if task is None:
                    break
                assigned.append(task)
        return assigned

    def wait_for_task(self, worker_host: str, timeout: Optional[float] = None) -> Optional[Task]:
        """
        Like `request_task`, but block until a task becomes pending again.

        Returns None on timeout, on shutdown, or once no task is pending or
        running (nothing can be re-queued any more).
        """
        validate_host(worker_host)
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._work_available:
            while True:
                task = self._assign_locked(worker_host)
                if task is not None or self._shutdown:
                    return task
                if not any(t.status == TaskStatus.RUNNING for t in self._tasks.values()):
                    return None
                if deadline is None:
                    self._work_available.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._work_available.wait(remaining)

    # ===== State transitions driven by collaborators =====

    def requeue_task(self, task_id: str) -> Task:
        """
        Return a RUNNING task to PENDING and re-insert it into every index.

        Called when the worker running the task is declared lost.

        Raises:
            TaskNotFoundError: If the task is not part of this job.
            InconsistentTaskStateError: If the task is not RUNNING.
        """
        with self._lock:
            task = self._get(task_id)
            if task.status != TaskStatus.RUNNING:
                raise InconsistentTaskStateError(task_id, task.status.value, "requeue")
            self._requeue_locked(task)
            self._work_available.notify_all()
        return task

    def _requeue_locked(self, task: Task):
        if self.counter_policy == RequeueCounterPolicy.CORRECTIVE and task.locality is not None:
            self.counters.retract(task.locality)

        previous = task.assigned_worker
        task.status = TaskStatus.PENDING
        task.assigned_worker = None
        task.assigned_at = None
        self._insert(task)
        self.logger.info(f"Task {task.task_id} of job {self.job_id} re-queued (was on {previous})")

    def requeue_worker(self, worker_host: str) -> List[Task]:
        """
        Re-queue every RUNNING task bound to a host.
        """
        with self._lock:
            running = [
                t for t in self._tasks.values()
                if t.status == TaskStatus.RUNNING and t.assigned_worker == worker_host
            ]
            for task in running:
                self._requeue_locked(task)
            if running:
                self._work_available.notify_all()
        return running

    def complete_task(self, task_id: str) -> Task:
        return self._finish(task_id, TaskStatus.DONE)

    def fail_task(self, task_id: str, error_message: Optional[str] = None) -> Task:
        return self._finish(task_id, TaskStatus.FAILED, error_message)

    def _finish(self, task_id: str, status: TaskStatus, error_message: Optional[str] = None) -> Task:
        with self._lock:
            task = self._get(task_id)
            if task.status != TaskStatus.RUNNING:
                raise InconsistentTaskStateError(task_id, task.status.value, f"mark {status.value}")
            task.status = status
            task.error_message = error_message
            task.completed_at = datetime.utcnow()
            self._work_available.notify_all()
        self.logger.info(f"Task {task_id} of job {self.job_id} {status.value}")
        return task

    def shutdown(self):
        """
        Stop handing out tasks and release every waiting worker.
        """
        with self._lock:
            self._shutdown = True
            self._work_available.notify_all()
        self.logger.info(f"Scheduling for job {self.job_id} shut down")

    # ===== Reporting =====

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def get_task(self, task_id: str) -> Task:
        return self._get(task_id)

    def task_state(self, task_id: str) -> TaskStatus:
        return self._get(task_id).status

    def tasks(self) -> List[Task]:
        return list(self._tasks.values())

    def get_counters(self) -> Dict[str, int]:
        return self.counters.snapshot()

    def pending_count(self) -> int:
        with self._lock:
            return len(self._unindexed)

    def running_tasks(self) -> List[Task]:
        return [t for t in self._tasks.values() if t.status == TaskStatus.RUNNING]

    def pending_for_host(self, host: str) -> List[str]:
        with self._lock:
            return sorted(self._by_host.get(host, ()), key=self._plan_order)

    def pending_for_rack(self, rack: str) -> List[str]:
        with self._lock:
            return sorted(self._by_rack.get(rack, ()), key=self._plan_order)

    def pending_unindexed(self) -> List[str]:
        with self._lock:
            return sorted(self._unindexed, key=self._plan_order)

    def all_done(self) -> bool:
        return all(t.status == TaskStatus.DONE for t in self._tasks.values())

    def has_failures(self) -> bool:
        return any(t.status == TaskStatus.FAILED for t in self._tasks.values())
