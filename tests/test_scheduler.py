"""
Tests for the scheduler service and the manual trigger API.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from anisync.config import Settings
from anisync.main import app
from anisync.models.response import IngestionReport
from anisync.services.scheduler import SchedulerService


@pytest.fixture
def scheduler_service(settings):
    scheduler = MagicMock()
    scheduler.running = False
    scheduler.get_jobs.return_value = []
    return SchedulerService(scheduler=scheduler, settings=settings)


def test_start_registers_single_non_reentrant_job(scheduler_service):
    scheduler_service.start()

    scheduler_service.scheduler.start.assert_called_once()
    kwargs = scheduler_service.scheduler.add_job.call_args.kwargs
    assert kwargs["max_instances"] == 1
    assert kwargs["coalesce"] is True
    assert kwargs["trigger"].interval.total_seconds() == 60


def test_stop_only_when_running(scheduler_service):
    scheduler_service.stop()
    scheduler_service.scheduler.shutdown.assert_not_called()

    scheduler_service.scheduler.running = True
    scheduler_service.stop()
    scheduler_service.scheduler.shutdown.assert_called_once()


def test_status_reports_running_flag(scheduler_service):
    status = scheduler_service.get_job_status()
    assert status["running"] is False
    assert status["jobs"] == []


@pytest.mark.asyncio
async def test_scan_failure_is_contained(scheduler_service):
    with patch(
        "anisync.jobs.ingestion.run_ingestion_job",
        AsyncMock(side_effect=RuntimeError("database gone")),
    ) as run:
        await scheduler_service.trigger_all_now(force=True)

    run.assert_awaited_once_with(force=True)


@pytest.mark.asyncio
async def test_scan_runs_ingestion(scheduler_service):
    report = IngestionReport(started_at="2024-05-12T00:00:00Z")
    with patch("anisync.jobs.ingestion.run_ingestion_job", AsyncMock(return_value=report)) as run:
        await scheduler_service._run_scan()

    run.assert_awaited_once_with(force=False)


@pytest.mark.asyncio
async def test_single_source_failure_is_contained(scheduler_service):
    with patch(
        "anisync.jobs.ingestion.run_single_source_job",
        AsyncMock(side_effect=RuntimeError("no such feed")),
    ) as run:
        await scheduler_service.trigger_source_now(42)

    run.assert_awaited_once_with(42)


@pytest.fixture
def mock_service():
    service = MagicMock()
    service.trigger_all_now = AsyncMock()
    service.trigger_source_now = AsyncMock()
    service.get_job_status.return_value = {"running": True, "jobs": []}
    with patch("anisync.routers.feeds.get_scheduler_service", return_value=service), \
         patch("anisync.routers.scheduler.get_scheduler_service", return_value=service):
        yield service


@pytest.fixture
def client():
    # No context manager: lifespan (database, scheduler) is not started
    return TestClient(app)


def test_refresh_all_accepted_and_runs_in_background(client, mock_service):
    response = client.post("/feeds/refresh?force=true")

    assert response.status_code == 202
    assert response.json()["success"] is True
    mock_service.trigger_all_now.assert_awaited_once_with(True)


def test_refresh_one_accepted_for_any_id(client, mock_service):
    response = client.post("/feeds/999/refresh")

    assert response.status_code == 202
    mock_service.trigger_source_now.assert_awaited_once_with(999)


def test_scheduler_status(client, mock_service):
    response = client.get("/scheduler/status")
    assert response.status_code == 200
    assert response.json()["running"] is True


def test_admin_key_enforced_when_configured(client, mock_service):
    with patch(
        "anisync.routers.scheduler.get_settings",
        return_value=Settings(admin_api_key="secret"),
    ):
        denied = client.post("/feeds/refresh")
        allowed = client.post("/feeds/refresh", headers={"X-API-Key": "secret"})

    assert denied.status_code == 401
    assert denied.json()["error"] is True
    assert allowed.status_code == 202


def _database(reachable):
    database = MagicMock()
    database.check_connection = AsyncMock(return_value=reachable)
    return database


def test_health(client):
    with patch("anisync.main.get_database", return_value=_database(True)):
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok"}


def test_health_reports_unreachable_database(client):
    with patch("anisync.main.get_database", return_value=_database(False)):
        response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
