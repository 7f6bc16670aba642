"""
Background scheduler for the job dispatch timeout sweep.
Uses APScheduler to periodically flag dispatches whose timeout_at has passed.
The timeout itself is decided by whoever sets timeout_at; this only records it.
"""
import logging
import atexit
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from django.conf import settings
from django.core.management import call_command

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = None


def sweep_timed_out_jobs_job():
    """Background job wrapping the sweep_timed_out_jobs command"""
    try:
        call_command('sweep_timed_out_jobs')
    except Exception as e:
        logger.error(f"Error in scheduled timeout sweep: {str(e)}", exc_info=True)


def start_scheduler():
    """
    Initialize and start the background scheduler.
    This should be called once when Django starts.
    """
    global scheduler

    if scheduler is not None and scheduler.running:
        logger.warning("Scheduler is already running")
        return

    interval = getattr(settings, 'JOBTRAIL_TIMEOUT_SWEEP_SECONDS', 60)

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        sweep_timed_out_jobs_job,
        trigger=IntervalTrigger(seconds=interval),
        id='sweep_timed_out_jobs',
        name='Flag Timed Out Job Dispatches',
        replace_existing=True,
        max_instances=1,  # Prevent overlapping runs
        coalesce=True
    )
    scheduler.start()
    logger.info(f"Background scheduler started, timeout sweep every {interval}s")

    atexit.register(stop_scheduler)


def stop_scheduler():
    """
    Stop the background scheduler.
    Should be called when Django shuts down.
    """
    global scheduler

    if scheduler is not None and scheduler.running:
        try:
            scheduler.shutdown(wait=True)
            logger.info("Background scheduler stopped")
        finally:
            scheduler = None
