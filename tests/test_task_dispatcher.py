import asyncio
import json

import httpx

from gridsched.models.split import Split
from gridsched.models.task import Locality, Task
from gridsched.models.worker import Worker
from gridsched.services.task_dispatcher import TaskDispatcher


def _task():
    return Task(
        job_id="job-1",
        split=Split(path="/racktesting/file2", length=100, hosts=["host1.rack2.com"]),
        locality=Locality.DATA_LOCAL,
        attempts=1
    )


def test_dispatch_posts_task_to_worker():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"status": "accepted"})

    dispatcher = TaskDispatcher(transport=httpx.MockTransport(handler))
    worker = Worker(worker_id="tt-1", host="host1.rack2.com", port=9001)
    task = _task()

    assert asyncio.run(dispatcher.dispatch(task, worker)) is True
    url, payload = seen[0]
    assert url == "http://host1.rack2.com:9001/api/v1/tasks/assign"
    assert payload["task_id"] == task.task_id
    assert payload["input_split"] == {"path": "/racktesting/file2", "offset": 0, "length": 100}
    assert payload["locality"] == "data_local"


def test_dispatch_failure_is_reported_not_raised():
    dispatcher = TaskDispatcher(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    worker = Worker(worker_id="tt-1", host="host1.rack2.com")

    assert asyncio.run(dispatcher.dispatch(_task(), worker)) is False
