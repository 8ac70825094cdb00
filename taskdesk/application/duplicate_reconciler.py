"""
Duplicate reconciler - manual maintenance pass over generated instances.

Groups all instances of a user by (parent_task_id, due_date) and keeps only
the earliest-created row of each group. Safe to re-run.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from taskdesk.infrastructure.store import RecordStore, StoreError

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    deleted: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"deleted": self.deleted, "errors": list(self.errors)}


def cleanup_duplicate_instances(store: RecordStore, user_id: int) -> CleanupResult:
    result = CleanupResult()
    try:
        _cleanup(store, user_id, result)
    except Exception as e:
        logger.exception("Duplicate cleanup failed for user %s", user_id)
        result.errors.append(f"Cleanup error: {e}")

    logger.info("Duplicate cleanup done for user %s: deleted=%d", user_id, result.deleted)
    return result


def _cleanup(store: RecordStore, user_id: int, result: CleanupResult) -> None:
    try:
        instances = store.find("tasks", {
            "user_id": user_id,
            "parent_task_id__isnull": False,
        }, order=["parent_task_id", "due_date", "created_at", "id"])
    except StoreError as e:
        logger.error("Failed to fetch instances for user %s: %s", user_id, e)
        result.errors.append(f"Failed to fetch instances: {e}")
        return

    groups: dict[tuple, list[dict]] = defaultdict(list)
    for inst in instances:
        if inst["due_date"] is None:
            continue
        groups[(inst["parent_task_id"], inst["due_date"])].append(inst)

    for (parent_id, due), members in groups.items():
        if len(members) < 2:
            continue
        members.sort(key=lambda r: (r["created_at"], r["id"]))
        keep, duplicates = members[0], members[1:]
        logger.info(
            "Found %d duplicates for parent %s on %s, keeping %s",
            len(members), parent_id, due, keep["id"],
        )
        for dup in duplicates:
            try:
                store.delete("tasks", {"id": dup["id"]})
            except StoreError as e:
                logger.error("Failed to delete duplicate %s: %s", dup["id"], e)
                result.errors.append(f"Failed to delete duplicate {dup['id']}: {e}")
                continue
            result.deleted += 1
