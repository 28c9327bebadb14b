"""Scheduler setup and API endpoint tests."""

import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("SYNC_API_KEY", "test-sync-key")

from fastapi.testclient import TestClient

from config import SYSTEM_TIMEZONE_STR
from main import app
from scheduler import SCHEDULED_JOBS, scheduler

API_HEADERS = {"X-API-Key": "test-sync-key"}


@pytest.fixture(scope="module")
def client():
    """TestClient as context manager to trigger lifespan (starts scheduler)."""
    with patch("config.SYNC_API_KEY", "test-sync-key"), TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Job registry tests (no lifespan needed)
# ---------------------------------------------------------------------------

def test_jira_sync_job_in_registry():
    """The Jira sync job is defined in SCHEDULED_JOBS."""
    job_ids = [j["id"] for j in SCHEDULED_JOBS]
    assert "sync_jira_tasks" in job_ids


def test_job_definitions_have_required_fields():
    """Every job definition has the required fields."""
    required = {"id", "name", "func", "trigger"}
    for job_def in SCHEDULED_JOBS:
        missing = required - set(job_def.keys())
        assert not missing, f"Job {job_def.get('id', '?')} missing fields: {missing}"


def test_job_funcs_are_callable():
    """Every job function is callable."""
    for job_def in SCHEDULED_JOBS:
        assert callable(job_def["func"]), f"Job {job_def['id']} func is not callable"


def test_jira_sync_job_calls_run_jira_sync():
    """The job wrapper delegates to run_jira_sync."""
    job_def = next(j for j in SCHEDULED_JOBS if j["id"] == "sync_jira_tasks")
    with patch("services.jira.sync_tasks.run_jira_sync", return_value={"success": True}) as mock_run:
        assert job_def["func"]() == {"success": True}
    mock_run.assert_called_once_with()


# ---------------------------------------------------------------------------
# Scheduler lifecycle tests (need lifespan via client fixture)
# ---------------------------------------------------------------------------

def test_scheduler_is_running(client):
    """Scheduler is running after app startup (via lifespan)."""
    assert scheduler.running


def test_all_registry_jobs_are_registered(client):
    """Every job in SCHEDULED_JOBS is registered in the running scheduler."""
    registered_ids = {job.id for job in scheduler.get_jobs()}
    for job_def in SCHEDULED_JOBS:
        assert job_def["id"] in registered_ids, f"Job {job_def['id']} not registered"


def test_jobs_have_next_run_time(client):
    """All registered jobs have a next_run_time set."""
    for job in scheduler.get_jobs():
        assert job.next_run_time is not None, f"Job {job.id} has no next_run_time"


def test_jira_sync_uses_system_timezone(client):
    """The Jira sync job runs in the system timezone."""
    job = scheduler.get_job("sync_jira_tasks")
    assert job is not None
    timezone_key = getattr(job.trigger.timezone, "key", None) or getattr(job.trigger.timezone, "zone", None)
    assert timezone_key == SYSTEM_TIMEZONE_STR


# ---------------------------------------------------------------------------
# API endpoint tests (need lifespan via client fixture)
# ---------------------------------------------------------------------------

def test_list_jobs_endpoint(client):
    """GET /scheduler/jobs returns job list."""
    response = client.get("/scheduler/jobs")
    assert response.status_code == 200
    data = response.json()
    assert "jobs" in data
    assert len(data["jobs"]) == len(SCHEDULED_JOBS)


def test_list_jobs_returns_expected_fields(client):
    """GET /scheduler/jobs returns id, name, next_run_time, trigger for each job."""
    response = client.get("/scheduler/jobs")
    for job in response.json()["jobs"]:
        assert "id" in job
        assert "name" in job
        assert "next_run_time" in job
        assert "trigger" in job


def test_trigger_job_requires_api_key(client):
    """POST /scheduler/jobs/{id}/run rejects requests without the API key."""
    response = client.post("/scheduler/jobs/sync_jira_tasks/run")
    assert response.status_code == 401


def test_trigger_nonexistent_job(client):
    """POST /scheduler/jobs/{id}/run returns 404 for unknown job."""
    response = client.post("/scheduler/jobs/nonexistent_job/run", headers=API_HEADERS)
    assert response.status_code == 404
