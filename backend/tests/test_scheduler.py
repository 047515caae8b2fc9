"""Tests for the scheduled refresh job."""

import shlex
import sys

from estate_refresh.config import CommandConfig
from estate_refresh.scheduler import build_scheduler, refresh_job


def test_scheduler_registers_refresh_job(settings) -> None:
    settings.scheduler.sync_interval_hours = 6

    scheduler = build_scheduler(settings)
    jobs = scheduler.get_jobs()

    assert [job.id for job in jobs] == ["sync-and-rebuild"]
    assert jobs[0].max_instances == 1
    assert jobs[0].coalesce is True
    assert jobs[0].trigger.interval.total_seconds() == 6 * 3600


def test_refresh_job_is_trusted(settings) -> None:
    python = shlex.quote(sys.executable)
    settings.commands = CommandConfig(
        sync=python + " -c 'import sys; sys.exit(1)'",
        build=python + " -c 'pass'",
    )

    outcome = refresh_job(settings)

    assert outcome.success
    assert outcome.stages[0].succeeded is False


def test_refresh_job_reports_build_failure(settings) -> None:
    python = shlex.quote(sys.executable)
    settings.commands = CommandConfig(
        sync=python + " -c 'pass'",
        build=python + " -c 'import sys; sys.stderr.write(\"hugo: build aborted\\n\"); sys.exit(2)'",
    )

    outcome = refresh_job(settings)

    assert not outcome.success
    assert "hugo: build aborted" in outcome.error_details
