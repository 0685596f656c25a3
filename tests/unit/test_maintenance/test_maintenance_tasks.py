"""Tests for Celery maintenance tasks."""

from authgate.infrastructure.tasks import maintenance_tasks
from authgate.infrastructure.tasks.celery_app import celery_app


def test_sweep_scheduled_on_beat():
    entry = celery_app.conf.beat_schedule["sweep-expired-auth-state"]

    assert entry["task"] == "authgate.infrastructure.tasks.maintenance_tasks.sweep_expired_auth_state"
    assert entry["schedule"] == 3600.0


def test_sweep_task_reports_removed_rows(monkeypatch):
    async def fake_sweep():
        return {"refresh_tokens": 2, "blacklisted_tokens": 1, "rate_limit_windows": 0}

    monkeypatch.setattr(maintenance_tasks, "sweep_expired_state", fake_sweep)

    result = maintenance_tasks.sweep_expired_auth_state()

    assert result["status"] == "COMPLETED"
    assert result["removed"] == {"refresh_tokens": 2, "blacklisted_tokens": 1, "rate_limit_windows": 0}


def test_sweep_task_reports_failure(monkeypatch):
    async def failing_sweep():
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(maintenance_tasks, "sweep_expired_state", failing_sweep)

    result = maintenance_tasks.sweep_expired_auth_state()

    assert result["status"] == "FAILED"
    assert result["error"] == "database unavailable"
