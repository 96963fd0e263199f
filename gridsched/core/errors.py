class SchedulerError(Exception):
    """Base class for errors raised by the scheduling core."""


class InvalidRequestError(SchedulerError):
    """
    Raised when a caller asks for something that cannot be valid:
    an unknown job, an unknown task, or an empty/malformed worker host.
    """


class JobNotFoundError(InvalidRequestError):
    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class TaskNotFoundError(InvalidRequestError):
    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class InconsistentTaskStateError(SchedulerError):
    """
    Raised when a state transition is requested for a task that is not in
    the state the transition requires, e.g. re-queuing a task that is
    already PENDING.
    """

    def __init__(self, task_id: str, state: str, operation: str):
        super().__init__(f"Cannot {operation} task {task_id} in state {state}")
        self.task_id = task_id
        self.state = state
        self.operation = operation
