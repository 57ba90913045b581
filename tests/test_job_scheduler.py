"""Tests for APScheduler wrapper utilities."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MAX_INSTANCES


def test_job_listener_logs_exception():
    from port_monitor.scheduler import job_scheduler

    event = SimpleNamespace(code=EVENT_JOB_ERROR, exception=RuntimeError("boom"), job_id="job1")
    job_scheduler._job_listener(event)


def test_job_listener_counts_skipped_ticks(monkeypatch):
    from port_monitor.scheduler import job_scheduler

    skipped = MagicMock()
    monkeypatch.setattr(job_scheduler, "cycles_skipped_total", skipped)

    event = SimpleNamespace(code=EVENT_JOB_MAX_INSTANCES, job_id="monitor_cycle")
    job_scheduler._job_listener(event)

    skipped.inc.assert_called_once()


def test_get_jobs_info_formats_jobs(monkeypatch):
    from port_monitor.scheduler import job_scheduler

    job = SimpleNamespace(
        id="a",
        name="n",
        next_run_time=datetime(2025, 1, 1, tzinfo=timezone.utc),
        trigger="interval[0:00:30]",
    )
    monkeypatch.setattr(job_scheduler, "scheduler", SimpleNamespace(get_jobs=lambda: [job]))
    info = job_scheduler.get_jobs_info()
    assert info[0]["id"] == "a"
    assert info[0]["name"] == "n"
    assert "2025" in info[0]["next_run"]


def test_get_jobs_info_without_scheduler(monkeypatch):
    from port_monitor.scheduler import job_scheduler

    monkeypatch.setattr(job_scheduler, "scheduler", None)
    assert job_scheduler.get_jobs_info() == []


def test_create_scheduler_prevents_overlap():
    from port_monitor.scheduler import job_scheduler

    sched = job_scheduler.create_scheduler()

    assert sched._job_defaults["max_instances"] == 1
    assert sched._job_defaults["coalesce"] is True


def test_shutdown_scheduler_only_when_running(monkeypatch):
    from port_monitor.scheduler import job_scheduler

    sched = MagicMock()
    sched.running = True
    monkeypatch.setattr(job_scheduler, "scheduler", sched)

    job_scheduler.shutdown_scheduler()
    sched.shutdown.assert_called_once()

    sched.reset_mock()
    sched.running = False
    job_scheduler.shutdown_scheduler()
    sched.shutdown.assert_not_called()


def test_start_scheduler_adds_immediate_interval_job(monkeypatch):
    from port_monitor.scheduler import job_scheduler

    sched = MagicMock()
    sched.get_jobs.return_value = []
    monkeypatch.setattr(job_scheduler, "settings", SimpleNamespace(check_interval_seconds=30))

    with patch.object(job_scheduler, "create_scheduler", return_value=sched):
        job_scheduler.start_scheduler()

    kwargs = sched.add_job.call_args.kwargs
    assert kwargs["id"] == job_scheduler.MONITOR_JOB_ID
    assert kwargs["trigger"].interval.total_seconds() == 30
    assert kwargs["next_run_time"] is not None
    sched.start.assert_called_once()
    monkeypatch.setattr(job_scheduler, "scheduler", None)


@pytest.mark.asyncio
async def test_trigger_manual_cycle_reschedules_job(monkeypatch):
    from port_monitor.scheduler import job_scheduler

    job = MagicMock()
    sched = MagicMock()
    sched.get_job.return_value = job
    monkeypatch.setattr(job_scheduler, "scheduler", sched)

    msg = await job_scheduler.trigger_manual_cycle()

    assert msg == "Monitoring cycle triggered"
    job.modify.assert_called_once()


@pytest.mark.asyncio
async def test_trigger_manual_cycle_runs_direct_when_no_scheduler(monkeypatch):
    from port_monitor.scheduler import job_scheduler

    monkeypatch.setattr(job_scheduler, "scheduler", None)
    run_cycle = AsyncMock(return_value=True)

    with patch("port_monitor.monitor.service.run_monitor_cycle", new=run_cycle):
        msg = await job_scheduler.trigger_manual_cycle()

    assert msg == "Monitoring cycle completed"
    run_cycle.assert_awaited()
