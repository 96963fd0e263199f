import uuid

import pytest
from fastapi.testclient import TestClient

from gridsched.main import app

client = TestClient(app)


def _unique(prefix):
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def cluster():
    """
    Racks /r1 and /r2 with uniquely named hosts, so tests sharing the
    application state do not see each other's hosts.
    """
    suffix = uuid.uuid4().hex[:8]
    hosts = {
        "h1": f"host1.rack1.{suffix}",
        "h3": f"host3.rack1.{suffix}",
        "h2a": f"host1.rack2.{suffix}",
        "h2b": f"host2.rack2.{suffix}",
    }
    resp = client.post("/api/v1/topology", json={"hosts": {
        hosts["h1"]: "/r1",
        hosts["h2a"]: "/r2",
        hosts["h2b"]: "/r2",
    }})
    assert resp.status_code == 200
    return hosts


def _register(host, rack=None):
    worker_id = _unique("tt")
    resp = client.post("/api/v1/workers/register", json={"worker_id": worker_id, "host": host, "rack": rack, "port": 9001})
    assert resp.status_code == 200
    return worker_id


def _submit(cluster):
    replicated = [cluster["h1"], cluster["h2a"], cluster["h2b"]]
    resp = client.post("/api/v1/jobs", json={
        "job_name": "TestForRackAwareness",
        "splits": [
            {"path": "/racktesting/file1", "length": 100, "hosts": [cluster["h1"]]},
            {"path": "/racktesting/file2", "length": 100, "hosts": replicated},
            {"path": "/racktesting/file3", "length": 100, "hosts": replicated},
        ],
    })
    assert resp.status_code == 200
    assert resp.json()["total_tasks"] == 3
    return resp.json()["job_id"]


def _request(job_id, worker_id, slots=1):
    return client.post(f"/api/v1/jobs/{job_id}/tasks/request", json={"worker_id": worker_id, "slots": slots})


def test_health():
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_tracker_on_rack2(cluster):
    job_id = _submit(cluster)
    worker_id = _register(cluster["h2a"], "/r2")

    resp = _request(job_id, worker_id, slots=3)

    assert resp.status_code == 200
    assert [a["locality"] for a in resp.json()] == ["data_local", "data_local", "off_rack"]
    counters = client.get(f"/api/v1/jobs/{job_id}/counters").json()
    assert counters["DATA_LOCAL_MAPS"] == 2
    assert counters["RACK_LOCAL_MAPS"] == 0
    assert counters["OFF_RACK_MAPS"] == 1


def test_tracker_on_rack1(cluster):
    job_id = _submit(cluster)
    worker_id = _register(cluster["h3"], "/r1")

    for _ in range(3):
        assert len(_request(job_id, worker_id).json()) == 1
    assert _request(job_id, worker_id).json() == []

    counters = client.get(f"/api/v1/jobs/{job_id}/counters").json()
    assert counters["RACK_LOCAL_MAPS"] == 3
    assert counters["TOTAL_LAUNCHED_MAPS"] == 3


def test_task_lifecycle_and_job_status(cluster):
    job_id = _submit(cluster)
    worker_id = _register(cluster["h2a"], "/r2")
    assignment = _request(job_id, worker_id).json()[0]
    task_url = f"/api/v1/jobs/{job_id}/tasks/{assignment['task_id']}"

    state = client.get(task_url).json()
    assert state["status"] == "running"
    assert state["assigned_worker"] == cluster["h2a"]

    assert client.post(f"{task_url}/complete").json()["status"] == "done"
    assert client.post(f"{task_url}/complete").status_code == 409

    status = client.get(f"/api/v1/jobs/{job_id}").json()
    assert status["total_tasks"] == 3
    assert status["completed_tasks"] == 1
    assert status["pending_tasks"] == 2
    assert status["status"] == "running"


def test_requeue_pending_task_conflicts(cluster):
    job_id = _submit(cluster)
    worker_id = _register(cluster["h2a"], "/r2")
    task_id = _request(job_id, worker_id).json()[0]["task_id"]
    task_url = f"/api/v1/jobs/{job_id}/tasks/{task_id}"

    resp = client.post(f"{task_url}/requeue")
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"
    assert client.post(f"{task_url}/requeue").status_code == 409


def test_lost_worker_tasks_return_to_pending(cluster):
    job_id = _submit(cluster)
    worker_id = _register(cluster["h2b"], "/r2")
    task_id = _request(job_id, worker_id).json()[0]["task_id"]

    resp = client.post(f"/api/v1/workers/{worker_id}/lost")

    assert resp.status_code == 200
    assert resp.json()["requeued"] == {job_id: [task_id]}
    assert client.get(f"/api/v1/jobs/{job_id}/tasks/{task_id}").json()["status"] == "pending"
    assert _request(job_id, worker_id).status_code == 400


def test_failed_task_fails_job(cluster):
    job_id = _submit(cluster)
    worker_id = _register(cluster["h1"], "/r1")
    task_id = _request(job_id, worker_id).json()[0]["task_id"]

    resp = client.post(f"/api/v1/jobs/{job_id}/tasks/{task_id}/fail", json={"error_message": "bad record"})

    assert resp.json()["status"] == "failed"
    assert client.get(f"/api/v1/jobs/{job_id}").json()["status"] == "failed"
    assert _request(job_id, worker_id).json() == []


def test_shutdown(cluster):
    job_id = _submit(cluster)
    worker_id = _register(cluster["h1"], "/r1")

    assert client.post(f"/api/v1/jobs/{job_id}/shutdown").status_code == 200
    assert _request(job_id, worker_id).json() == []
    assert client.get(f"/api/v1/jobs/{job_id}").json()["status"] == "cancelled"


def test_unknown_job_and_worker(cluster):
    worker_id = _register(cluster["h1"], "/r1")
    assert _request("no-such-job", worker_id).status_code == 404

    job_id = _submit(cluster)
    assert _request(job_id, "no-such-worker").status_code == 400
    assert client.get(f"/api/v1/jobs/{job_id}/tasks/no-such-task").status_code == 404


def test_malformed_worker_host_is_rejected():
    resp = client.post("/api/v1/workers/register", json={"worker_id": _unique("tt"), "host": "bad host"})
    assert resp.status_code == 400
