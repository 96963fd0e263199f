from typing import Optional

import httpx

from gridsched.models.task import Task
from gridsched.models.worker import Worker
from gridsched.utils.logger import get_logger


class TaskDispatcher:
    """
    Hands assigned tasks to the worker runtime over HTTP.
    """

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger(__name__)

    async def dispatch(self, task: Task, worker: Worker) -> bool:
        """
        Send the task to the worker's `/api/v1/tasks/assign` endpoint.

        Delivery failures are logged and reported through the return value;
        the task stays RUNNING and the liveness monitor decides what to do.

        Args:
            task (Task): Task bound to the worker.
            worker (Worker): Worker that will run it.

        Returns:
            bool: True if the worker accepted the task.
        """
        url = f"{worker.endpoint_url}/api/v1/tasks/assign"

        payload = {
            "task_id": task.task_id,
            "job_id": task.job_id,
            "task_type": "map",
            "input_split": {
                "path": task.split.path,
                "offset": task.split.offset,
                "length": task.split.length,
            },
            "locality": task.locality.value if task.locality else None,
            "attempt": task.attempts,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
                self.logger.info(f"Task {task.task_id} sent to worker {worker.worker_id} ({url})")
                return True
            except httpx.HTTPError as e:
                self.logger.error(f"Failed to send task {task.task_id} to worker {worker.worker_id}: {e}")
                return False
