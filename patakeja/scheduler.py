import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .services.notifications import send_availability_checks
from .services.payments import reconcile_pending_payments, send_expiry_reminders

logger = logging.getLogger(__name__)


def _in_app_context(app, job):
    def run():
        with app.app_context():
            try:
                job()
            except Exception:
                # keep the scheduler thread alive; the next run retries
                logger.exception("Scheduled job %s failed", job.__name__)
    run.__name__ = job.__name__
    return run


def start_scheduler(app):
    scheduler = BackgroundScheduler(timezone="Africa/Nairobi")
    scheduler.add_job(
        _in_app_context(app, reconcile_pending_payments),
        CronTrigger(minute="*/5"),
        id="reconcile_pending_payments",
        replace_existing=True,
    )
    scheduler.add_job(
        _in_app_context(app, send_expiry_reminders),
        CronTrigger(hour=9, minute=0),
        id="send_expiry_reminders",
        replace_existing=True,
    )
    scheduler.add_job(
        _in_app_context(app, send_availability_checks),
        CronTrigger(day_of_week="mon", hour=8, minute=0),
        id="send_availability_checks",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started with %s jobs", len(scheduler.get_jobs()))
    return scheduler
