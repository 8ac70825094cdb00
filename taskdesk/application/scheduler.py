"""
Background scheduler - runs the recurring task engine periodically inside the FastAPI process.

Jobs:
  - Recurring engine (every ENGINE_SCHEDULER_INTERVAL_MINUTES) for every user
    owning an active template; the run-rate governor still gates each user.
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from taskdesk.config import get_settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _active_template_owners(store) -> list[int]:
    rows = store.find("tasks", {
        "is_recurring": True,
        "is_paused": False,
        "parent_task_id": None,
    }, order=["user_id"])
    return sorted({row["user_id"] for row in rows})


def _run_recurring_engine():
    from taskdesk.infrastructure.db.session import get_session_factory
    from taskdesk.infrastructure.store import RecordStore
    from taskdesk.application.recurring_engine import run_engine_for_user

    Session = get_session_factory()
    db = Session()
    try:
        store = RecordStore(db)
        for user_id in _active_template_owners(store):
            result = run_engine_for_user(store, user_id)
            if result.errors:
                logger.warning("Recurring engine errors for user %s: %s", user_id, result.errors)
    except Exception:
        logger.exception("Recurring engine job failed")
    finally:
        db.close()


def start_scheduler():
    """Start the background scheduler with the periodic engine job."""
    interval = get_settings().ENGINE_SCHEDULER_INTERVAL_MINUTES
    scheduler.add_job(
        _run_recurring_engine,
        "interval",
        minutes=interval,
        id="recurring_engine",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started: recurring_engine (every %d min)", interval)


def shutdown_scheduler():
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
