from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import make_job
from lead_importer.api.dependencies.db import get_progress_tracker, get_session
from lead_importer.db.models.import_job import JobState
from lead_importer.main import create_app


class FakeScalars:
    def __init__(self, items):
        self._items = items

    def all(self):
        return self._items


class FakeApiSession:
    def __init__(self, jobs):
        self.jobs = {job.id: job for job in jobs}
        self.queries = []

    async def get(self, model, job_id):
        return self.jobs.get(job_id)

    async def scalars(self, query):
        self.queries.append(query)
        return FakeScalars(list(self.jobs.values()))


class FakeProgress:
    def __init__(self, snapshots):
        self.snapshots = snapshots

    async def fetch(self, job_id):
        return self.snapshots.get(job_id, {})


@pytest.fixture
def jobs():
    done = make_job("done-job", minutes=0)
    done.status = JobState.DONE.value
    done.total_rows = done.processed_rows = 1200
    failed = make_job("failed-job", minutes=1)
    failed.status = JobState.FAILED.value
    failed.error = "duplicate key value"
    running = make_job("running-job", minutes=2)
    running.status = JobState.PROCESSING.value
    running.total_rows, running.processed_rows = 1000, 500
    return [done, failed, running]


@pytest.fixture
def client(settings, jobs):
    app = create_app(settings)
    session = FakeApiSession(jobs)

    async def override_session():
        yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_progress_tracker] = lambda: FakeProgress(
        {"running-job": {"progress": 0.5, "message": "Processed 500/1000 rows"}}
    )
    return TestClient(app)


def test_get_job_returns_status_and_error(client):
    response = client.get("/api/jobs/failed-job")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failed"
    assert body["error"] == "duplicate key value"
    assert body["file_path"] == "leads.xlsx"


def test_get_job_includes_progress_snapshot(client):
    body = client.get("/api/jobs/running-job").json()

    assert body["progress"] == 0.5
    assert body["message"] == "Processed 500/1000 rows"


def test_done_job_reports_full_progress(client):
    assert client.get("/api/jobs/done-job").json()["progress"] == 1.0


def test_unknown_job_is_404(client):
    assert client.get("/api/jobs/nope").status_code == 404


def test_list_jobs(client):
    response = client.get("/api/jobs/", params={"status": "failed", "limit": 10})

    assert response.status_code == 200
    assert {job["id"] for job in response.json()} == {"done-job", "failed-job", "running-job"}


def test_list_jobs_rejects_unknown_status(client):
    assert client.get("/api/jobs/", params={"status": "exploded"}).status_code == 422


def test_liveness(client):
    assert client.get("/health/live").json() == {"status": "ok", "service": "lead-importer-api"}
