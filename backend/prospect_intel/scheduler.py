"""APScheduler queue worker - sweeps pending ingestion jobs."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from prospect_intel.config import settings
from prospect_intel.services.orchestrator import MasterOrchestrator, master_orchestrator

logger = logging.getLogger(__name__)

# Create scheduler instance
scheduler = AsyncIOScheduler()


async def process_pending_jobs(orchestrator: MasterOrchestrator = None) -> int:
    """
    Pick up jobs still pending (e.g. queued before a restart), plus retrying
    or processing jobs whose worker went away, and run them with the usual
    priority split. Jobs already claimed elsewhere are skipped by the
    orchestrator's claim step.
    """
    orchestrator = orchestrator or master_orchestrator
    try:
        jobs = await orchestrator.sweepable_jobs(settings.QUEUE_BATCH_SIZE)
        if not jobs:
            return 0

        logger.info(f"Queue worker picked up {len(jobs)} pending jobs")
        results = await orchestrator.process_batch(jobs)
        completed = sum(1 for r in results if r.get("success"))
        logger.info(f"Queue worker finished: {completed}/{len(jobs)} completed")
        return len(jobs)
    except Exception as e:
        logger.error(f"Queue sweep failed: {e}")
        return 0


def start_scheduler():
    """Start the queue worker. Run this on app startup."""
    if not settings.ENABLE_QUEUE_WORKER:
        logger.info("Queue worker disabled")
        return

    scheduler.add_job(
        process_pending_jobs,
        "interval",
        seconds=settings.QUEUE_POLL_SECONDS,
        id="ingestion_queue_worker",
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )
    scheduler.start()
    logger.info(f"Scheduler started - sweeping queue every {settings.QUEUE_POLL_SECONDS}s")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
