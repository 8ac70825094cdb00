"""
Run-rate governor - at most one engine run per user per interval.

The marker lives in the shared store (engine_runs), so the window is
per account and holds across devices, sessions and process restarts.
"""
import logging
import math
from datetime import datetime, timedelta

from taskdesk.infrastructure.store import RecordStore
from taskdesk.utils.clock import as_utc

logger = logging.getLogger(__name__)

MARKER_TABLE = "engine_runs"
DEFAULT_MIN_INTERVAL = timedelta(hours=1)


class RunRateGovernor:
    def __init__(self, store: RecordStore, min_interval: timedelta = DEFAULT_MIN_INTERVAL):
        self.store = store
        self.min_interval = min_interval

    def last_run_at(self, user_id: int) -> datetime | None:
        rows = self.store.find(MARKER_TABLE, {"user_id": user_id}, limit=1)
        if not rows:
            return None
        return as_utc(rows[0]["last_run_at"])

    def should_run(self, user_id: int, now: datetime) -> bool:
        last = self.last_run_at(user_id)
        if last is None:
            return True
        elapsed = as_utc(now) - last
        if elapsed < self.min_interval:
            remaining = self.min_interval - elapsed
            logger.info(
                "Engine ran %d min ago for user %s, skipping (%d min remaining)",
                elapsed.total_seconds() // 60, user_id,
                math.ceil(remaining.total_seconds() / 60),
            )
            return False
        return True

    def mark_run(self, user_id: int, now: datetime) -> None:
        ts = as_utc(now)
        updated = self.store.update(MARKER_TABLE, {"user_id": user_id}, {"last_run_at": ts})
        if not updated:
            self.store.insert(MARKER_TABLE, {"user_id": user_id, "last_run_at": ts})
