"""Job scheduler using APScheduler."""

import asyncio
import logging
from typing import NoReturn

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from estate_refresh.config import Settings
from estate_refresh.pipeline.models import PipelineOutcome, TriggerRequest
from estate_refresh.pipeline.orchestrator import SyncRebuildOrchestrator

logger = logging.getLogger(__name__)


def refresh_job(settings: Settings) -> PipelineOutcome:
    """Run one sync-and-rebuild cycle as a trusted scheduler trigger."""
    orchestrator = SyncRebuildOrchestrator(settings)
    request = TriggerRequest(
        headers=orchestrator.authenticator.marker(),
        source="scheduler",
    )
    outcome = asyncio.run(orchestrator.run(request))

    if outcome.success:
        logger.info(f"Scheduled refresh succeeded in {outcome.duration}")
    else:
        logger.error(f"Scheduled refresh failed: {outcome}")
    return outcome


def build_scheduler(settings: Settings) -> BlockingScheduler:
    """Create a scheduler with the refresh job registered."""
    scheduler = BlockingScheduler()

    scheduler.add_job(
        refresh_job,
        IntervalTrigger(hours=settings.scheduler.sync_interval_hours),
        args=[settings],
        id="sync-and-rebuild",
        name="Listing sync and site rebuild",
        max_instances=1,
        coalesce=True,
    )
    logger.info(
        f"Registered job: Listing sync and site rebuild "
        f"(every {settings.scheduler.sync_interval_hours} h)"
    )
    return scheduler


def start_scheduler(settings: Settings) -> NoReturn:
    """Start the APScheduler with the refresh job."""
    scheduler = build_scheduler(settings)

    try:
        logger.info("✓ Scheduler starting...")
        logger.info(f"✓ {len(scheduler.get_jobs())} jobs registered")
        logger.info("Press Ctrl+C to stop\n")

        scheduler.start()

    except (KeyboardInterrupt, SystemExit):
        logger.info("\nReceived interrupt signal")
        scheduler.shutdown()
        logger.info("✓ Scheduler stopped cleanly")
