"""Recurring task templates use cases - create, list, pause, delete"""
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from taskdesk.domain.recurrence import parse_rule, format_rule
from taskdesk.domain.recurring_task import RecurringTask
from taskdesk.infrastructure.store import RecordStore
from taskdesk.utils.clock import as_utc


class RecurringTaskValidationError(ValueError):
    pass


class RecurringTaskNotFound(LookupError):
    pass


def _template_filter(user_id: int, template_id: int) -> dict[str, Any]:
    return {
        "id": template_id,
        "user_id": user_id,
        "is_recurring": True,
        "parent_task_id": None,
    }


def _get_template(store: RecordStore, user_id: int, template_id: int) -> dict[str, Any]:
    rows = store.find("tasks", _template_filter(user_id, template_id), limit=1)
    if not rows:
        raise RecurringTaskNotFound(f"Recurring task #{template_id} not found")
    return rows[0]


class CreateRecurringTaskUseCase:
    def __init__(self, db: Session):
        self.store = RecordStore(db)

    def execute(
        self,
        user_id: int,
        title: str,
        recurrence_rule: str,
        description: str | None = None,
        category: str | None = None,
        client_id: int | None = None,
        is_urgent: bool = False,
        time_block_start: datetime | None = None,
        time_block_end: datetime | None = None,
    ) -> dict[str, Any]:
        title = title.strip()
        if not title:
            raise RecurringTaskValidationError("Title must not be empty")
        if parse_rule(recurrence_rule) is None:
            raise RecurringTaskValidationError(f"Invalid recurrence rule: {recurrence_rule}")
        if (time_block_start is None) != (time_block_end is None):
            raise RecurringTaskValidationError("Time block needs both start and end")
        if time_block_start is not None:
            # offset-less input is read as UTC, same as stored values
            time_block_start, time_block_end = as_utc(time_block_start), as_utc(time_block_end)
            if time_block_start >= time_block_end:
                raise RecurringTaskValidationError("Time block start must be before its end")

        payload = RecurringTask.create(
            user_id=user_id,
            title=title,
            recurrence_rule=recurrence_rule.strip().lower(),
            description=(description or "").strip() or None,
            category=category or None,
            client_id=client_id,
            is_urgent=is_urgent,
            time_block_start=time_block_start,
            time_block_end=time_block_end,
        )
        return self.store.insert("tasks", payload)


class ToggleRecurringTaskPauseUseCase:
    def __init__(self, db: Session):
        self.store = RecordStore(db)

    def execute(self, user_id: int, template_id: int) -> bool:
        """Flip is_paused. Returns the new value."""
        template = _get_template(self.store, user_id, template_id)
        paused = not template["is_paused"]
        self.store.update("tasks", {"id": template_id}, {"is_paused": paused})
        return paused


class DeleteRecurringTaskUseCase:
    def __init__(self, db: Session):
        self.store = RecordStore(db)

    def execute(self, user_id: int, template_id: int, delete_instances: bool = False) -> int:
        """
        Delete a template. Its instances are either deleted too or detached
        (parent_task_id cleared) and kept as ordinary tasks.

        Returns the number of instances deleted or detached.
        """
        _get_template(self.store, user_id, template_id)
        if delete_instances:
            affected = self.store.delete("tasks", {"parent_task_id": template_id})
        else:
            affected = self.store.update("tasks", {"parent_task_id": template_id}, {"parent_task_id": None})
        self.store.delete("tasks", {"id": template_id})
        return affected


def list_recurring_tasks(db: Session, user_id: int) -> list[dict[str, Any]]:
    """All templates of the user, paused ones included, with a readable rule."""
    rows = RecordStore(db).find("tasks", {
        "user_id": user_id,
        "is_recurring": True,
        "parent_task_id": None,
    }, order=["created_at", "id"])
    for row in rows:
        row["rule_label"] = format_rule(row["recurrence_rule"])
    return rows
