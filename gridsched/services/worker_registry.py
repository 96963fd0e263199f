from datetime import datetime
from typing import Dict, List, Optional

from gridsched.core.errors import InvalidRequestError
from gridsched.core.job_manager import JobManager
from gridsched.core.task_scheduler import validate_host
from gridsched.core.topology import TopologyResolver
from gridsched.models.worker import Worker, WorkerStatus
from gridsched.utils.logger import get_logger


class WorkerRegistry:
    """
    Cluster membership view of the master.

    Registering a worker places its host in the topology; declaring a
    worker lost hands its RUNNING tasks back to the job manager.
    """

    def __init__(self, topology: TopologyResolver, job_manager: Optional[JobManager] = None):
        self.topology = topology
        self.job_manager = job_manager
        # worker_id -> Worker
        self._workers: Dict[str, Worker] = {}
        self.logger = get_logger(__name__)

    def add_worker(self, worker: Worker):
        """
        Register or update a worker.

        Raises:
            InvalidRequestError: If the worker host is empty or malformed.
        """
        validate_host(worker.host)
        worker.status = WorkerStatus.AVAILABLE
        worker.registered_at = datetime.utcnow()
        self._workers[worker.worker_id] = worker
        if worker.rack:
            self.topology.add_host(worker.host, worker.rack)
        self.logger.info(f"Worker {worker.worker_id} registered on {worker.host} (rack {self.topology.rack_of(worker.host)})")

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        return self._workers.get(worker_id)

    def require_available(self, worker_id: str) -> Worker:
        """
        Return a registered, non-lost worker.

        Raises:
            InvalidRequestError: If the worker is unknown or was declared lost.
        """
        worker = self._workers.get(worker_id)
        if worker is None or worker.status != WorkerStatus.AVAILABLE:
            raise InvalidRequestError(f"Worker not registered: {worker_id}")
        return worker

    def get_available_workers(self) -> List[Worker]:
        return [w for w in self._workers.values() if w.status == WorkerStatus.AVAILABLE]

    def all_workers(self) -> List[Worker]:
        return list(self._workers.values())

    def mark_lost(self, worker_id: str) -> Dict[str, List[str]]:
        """
        Declare a worker dead and re-queue the tasks it was running.

        Returns:
            Dict[str, List[str]]: job_id -> re-queued task ids.
        """
        worker = self._workers.get(worker_id)
        if worker is None:
            raise InvalidRequestError(f"Worker not registered: {worker_id}")
        worker.status = WorkerStatus.LOST
        self.logger.warning(f"Worker {worker_id} on {worker.host} declared lost")

        # Another live worker may share the host; its tasks stay put.
        if any(w.host == worker.host for w in self.get_available_workers()):
            return {}
        if self.job_manager is None:
            return {}
        return self.job_manager.worker_lost(worker.host)

    def remove_worker(self, worker_id: str):
        self._workers.pop(worker_id, None)
        self.logger.info(f"Worker {worker_id} removed from registry")
