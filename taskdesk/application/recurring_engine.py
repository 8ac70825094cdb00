"""
Recurring task engine - materializes task instances from recurring templates.

Called opportunistically (page loads, explicit refresh) and by the periodic
scheduler job. Each run, per active template:

  1. skip if an instance was already created since local midnight
  2. compute the next due date from the rule token
  3. create an instance only if it is inside the horizon and strictly
     later than the template's most recent instance
  4. re-check the exact due date right before inserting

Templates are processed one after another; a failure in one template is
recorded and the run continues with the next. Nothing raises past run().
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

from taskdesk.config import get_settings
from taskdesk.domain.buckets import classify_bucket
from taskdesk.domain.instance_policy import should_create_instance, HORIZON_DAYS
from taskdesk.domain.recurrence import parse_rule, next_due_date
from taskdesk.domain.recurring_task import RecurringTask
from taskdesk.application.run_governor import RunRateGovernor
from taskdesk.infrastructure.store import RecordStore, StoreError
from taskdesk.utils.clock import as_utc, local_tz, local_today, local_midnight_utc

logger = logging.getLogger(__name__)

TASKS = "tasks"


@dataclass
class EngineRunResult:
    created: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"created": self.created, "errors": list(self.errors)}


class RecurringTaskEngine:
    def __init__(
        self,
        store: RecordStore,
        governor: RunRateGovernor | None = None,
        tz: ZoneInfo | None = None,
        horizon_days: int = HORIZON_DAYS,
    ):
        self.store = store
        self.governor = governor
        self.tz = tz or local_tz()
        self.horizon_days = horizon_days

    def run(self, user_id: int, now: datetime | None = None) -> EngineRunResult:
        """Generate due instances for all active templates of the user."""
        if now is None:
            now = datetime.now(timezone.utc)
        result = EngineRunResult()

        logger.info("Starting recurring task engine for user %s", user_id)

        try:
            self._run(user_id, now, result)
        except Exception as e:
            logger.exception("Recurring engine failed for user %s", user_id)
            result.errors.append(f"Engine error: {e}")

        logger.info(
            "Recurring task engine done for user %s: created=%d errors=%d",
            user_id, result.created, len(result.errors),
        )
        return result

    def _run(self, user_id: int, now: datetime, result: EngineRunResult) -> None:
        if self.governor is not None:
            try:
                if not self.governor.should_run(user_id, now):
                    return
                # Marker first: a run that crashes midway still counts
                self.governor.mark_run(user_id, now)
            except StoreError as e:
                logger.error("Run marker unavailable for user %s: %s", user_id, e)
                result.errors.append(f"Engine error: {e}")
                return

        try:
            templates = self.store.find(TASKS, {
                "user_id": user_id,
                "is_recurring": True,
                "is_paused": False,
                "parent_task_id": None,
            }, order=["created_at", "id"])
        except StoreError as e:
            logger.error("Failed to fetch recurring tasks for user %s: %s", user_id, e)
            result.errors.append(f"Failed to fetch recurring tasks: {e}")
            return

        logger.info("Found %d recurring task(s) for user %s", len(templates), user_id)

        today = local_today(now, self.tz)
        for template in templates:
            try:
                self._process_template(template, now, today, result)
            except Exception as e:
                logger.exception("Processing failed for template %s", template.get("id"))
                result.errors.append(f'Error processing "{template.get("title")}": {e}')

    def _process_template(
        self, template: dict[str, Any], now: datetime, today: date, result: EngineRunResult,
    ) -> None:
        title = template["title"]
        template_id = template["id"]

        if not template.get("recurrence_rule"):
            logger.debug('Skipping "%s": no recurrence rule', title)
            return

        try:
            created_today = self.store.find(TASKS, {
                "parent_task_id": template_id,
                "created_at__gte": local_midnight_utc(today, self.tz),
            }, limit=1)
        except StoreError as e:
            result.errors.append(f'Failed to check today\'s instances for "{title}": {e}')
            return
        if created_today:
            logger.debug('Skipping "%s": instance already created today', title)
            return

        try:
            latest = self.store.find(TASKS, {
                "parent_task_id": template_id,
                "due_date__isnull": False,
            }, order=["-due_date"], limit=1)
        except StoreError as e:
            result.errors.append(f'Failed to look up last instance for "{title}": {e}')
            return
        last_due = latest[0]["due_date"] if latest else None

        rule = parse_rule(template["recurrence_rule"])
        if rule is None:
            logger.debug('Skipping "%s": unrecognized rule %r', title, template["recurrence_rule"])
            return

        due = next_due_date(rule, today)
        if not should_create_instance(last_due, due, today, self.horizon_days):
            logger.debug('Skipping "%s": next due %s, last instance %s', title, due, last_due)
            return

        try:
            existing = self.store.find(TASKS, {"parent_task_id": template_id, "due_date": due}, limit=1)
        except StoreError as e:
            result.errors.append(f'Failed to check existing instances for "{title}": {e}')
            return
        if existing:
            logger.debug('Skipping "%s": instance for %s already exists', title, due)
            return

        status = classify_bucket(due, today)
        record = RecurringTask.instance(template, due, status, self.tz)
        record["created_at"] = as_utc(now)
        try:
            self.store.insert(TASKS, record)
        except StoreError as e:
            logger.error('Insert failed for "%s": %s', title, e)
            result.errors.append(f'Failed to create instance for "{title}": {e}')
            return

        result.created += 1
        logger.info('Created instance of "%s" due %s (%s)', title, due, status)


def run_engine_for_user(store: RecordStore, user_id: int, now: datetime | None = None) -> EngineRunResult:
    """Engine run gated by the configured run-rate governor."""
    settings = get_settings()
    governor = RunRateGovernor(store, timedelta(minutes=settings.ENGINE_MIN_RUN_INTERVAL_MINUTES))
    engine = RecurringTaskEngine(store, governor=governor, horizon_days=settings.ENGINE_HORIZON_DAYS)
    return engine.run(user_id, now=now)
