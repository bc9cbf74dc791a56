"""
Background job scheduler using APScheduler.

Registers the two fixed-time daily reset triggers. Both call the same job;
the per-day ledger makes the second one a no-op once the first succeeded.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
import logging
import atexit

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = BackgroundScheduler()

PRIMARY_JOB_ID = 'daily_task_reset_primary'
BACKUP_JOB_ID = 'daily_task_reset_backup'


def parse_trigger_time(value: str):
    """
    Parse an 'HH:MM' trigger time.

    Returns:
        tuple: (hour, minute)

    Raises:
        ValueError: If the value is not a valid wall-clock time
    """
    try:
        hour_text, minute_text = value.strip().split(':')
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid trigger time '{value}', expected HH:MM")

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid trigger time '{value}', expected HH:MM")
    return hour, minute


def register_jobs(app, target=None):
    """
    Add the primary and backup reset jobs to a scheduler.

    Args:
        app: Flask application instance
        target: Scheduler to register on (defaults to the global scheduler)
    """
    target = target or scheduler

    from taskreset.jobs.daily_reset import reset_tasks_primary, reset_tasks_backup

    timezone = app.config.get('RESET_TIMEZONE', 'Asia/Tokyo')
    primary_hour, primary_minute = parse_trigger_time(app.config.get('RESET_PRIMARY_TIME', '05:30'))
    backup_hour, backup_minute = parse_trigger_time(app.config.get('RESET_BACKUP_TIME', '05:45'))

    # Create job wrappers that run within app context
    def with_app_context(func):
        """Wrap job function to run within Flask app context."""
        def wrapper():
            with app.app_context():
                func()
        wrapper.__name__ = func.__name__
        return wrapper

    target.add_job(
        with_app_context(reset_tasks_primary),
        trigger=CronTrigger(hour=primary_hour, minute=primary_minute, timezone=timezone),
        id=PRIMARY_JOB_ID,
        name='Reset recurring tasks (primary)',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    target.add_job(
        with_app_context(reset_tasks_backup),
        trigger=CronTrigger(hour=backup_hour, minute=backup_minute, timezone=timezone),
        id=BACKUP_JOB_ID,
        name='Reset recurring tasks (backup)',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )


def init_scheduler(app):
    """
    Initialize and start the background scheduler.

    Args:
        app: Flask application instance
    """
    if not app.config.get('SCHEDULER_ENABLED', True):
        logger.info("Background scheduler disabled via configuration")
        return

    # Don't run scheduler in testing mode
    if app.config.get('TESTING', False):
        logger.info("Background scheduler disabled in testing mode")
        return

    register_jobs(app)

    scheduler.start()
    logger.info("Background scheduler started with %d jobs", len(scheduler.get_jobs()))

    # Register shutdown handler
    atexit.register(shutdown_scheduler)


def shutdown_scheduler():
    """Shutdown the background scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")


def get_job_status(target=None):
    """
    Get status of all scheduled jobs.

    Returns:
        list: List of job status dictionaries
    """
    target = target or scheduler
    jobs = []
    for job in target.get_jobs():
        next_run = getattr(job, 'next_run_time', None)
        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run': next_run.isoformat() if next_run else None,
            'trigger': str(job.trigger)
        })
    return jobs
