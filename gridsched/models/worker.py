from enum import Enum
from typing import Optional
from pydantic import BaseModel
from datetime import datetime


class WorkerStatus(str, Enum):
    """
    Enumeration of worker (task tracker) states as seen by the registry.

    - AVAILABLE: Registered and able to request work
    - LOST: Declared dead by the membership layer
    """
    AVAILABLE = "available"
    LOST = "lost"


class Worker(BaseModel):
    """
    Represents a task tracker process running on a specific host.

    Attributes:
        worker_id (str): Unique identifier of the worker.
        host (str): Host the worker runs on; the unit of data locality.
        rack (Optional[str]): Rack of the host, if reported at registration.
        port (int): Port of the worker's task endpoint.
        slots (int): Number of tasks the worker can run at once.
        status (WorkerStatus): Current membership status.
        registered_at (Optional[datetime]): Time of the last registration.
    """
    worker_id: str
    host: str
    rack: Optional[str] = None
    port: int = 8001
    slots: int = 1
    status: WorkerStatus = WorkerStatus.AVAILABLE
    registered_at: Optional[datetime] = None

    @property
    def endpoint_url(self) -> str:
        """
        Base URL for API communication with this worker.
        """
        return f"http://{self.host}:{self.port}"
